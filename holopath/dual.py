"""
Higher-order dual numbers.

A ``Dual`` of size n holds [f, f', f'', ..., f^(n-1)] for some function of a
single variable. Products, quotients and elementary functions are evaluated
with the recursive head/tail scheme, so the derivative order is only limited by
the size chosen in ``Dual.var``. This is used to check hand-derived derivative
formulas (the Hermite basis in particular), not on the hot path.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from numbers import Real

import numpy as np


class Dual:
    """Truncated derivative tower of a scalar function."""

    __slots__ = ("_values",)

    def __init__(self, values):
        arr = np.array(values, dtype=float).reshape(-1)
        if arr.size == 0:
            raise ValueError("Cannot create a Dual with no values")
        self._values = arr

    @classmethod
    def const(cls, value: float, n: int = 1) -> Dual:
        values = np.zeros(n)
        values[0] = value
        return cls(values)

    @classmethod
    def var(cls, value: float, n: int = 2) -> Dual:
        """The identity function at ``value``: derivative 1, higher derivatives 0."""
        if n < 2:
            raise ValueError(f"A variable needs at least 2 values, got n={n}")
        values = np.zeros(n)
        values[0] = value
        values[1] = 1.0
        return cls(values)

    @classmethod
    def _prepend(cls, value: float, tail: Dual) -> Dual:
        return cls(np.concatenate(([value], tail._values)))

    @property
    def size(self) -> int:
        return int(self._values.size)

    @property
    def is_real(self) -> bool:
        return self.size == 1

    @property
    def value(self) -> float:
        return float(self._values[0])

    def __getitem__(self, index: int) -> float:
        return float(self._values[index])

    def head(self, n: int = 1) -> Dual:
        """Drop the last ``n`` values."""
        return Dual(self._values[: self.size - n])

    def tail(self, n: int = 1) -> Dual:
        """Drop the first ``n`` values."""
        return Dual(self._values[n:])

    def to_array(self) -> np.ndarray:
        return self._values.copy()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Dual):
            return NotImplemented
        return bool(np.array_equal(self._values, other._values))

    def __hash__(self) -> int:
        return hash(tuple(self._values.tolist()))

    def __repr__(self) -> str:
        return f"Dual({', '.join(repr(v) for v in self._values.tolist())})"

    # Arithmetic

    def __pos__(self) -> Dual:
        return self

    def __neg__(self) -> Dual:
        return Dual(-self._values)

    def __add__(self, other) -> Dual:
        if isinstance(other, Dual):
            m = min(self.size, other.size)
            return Dual(self._values[:m] + other._values[:m])
        if isinstance(other, Real):
            values = self._values.copy()
            values[0] += float(other)
            return Dual(values)
        return NotImplemented

    def __radd__(self, other) -> Dual:
        return self + other

    def __sub__(self, other) -> Dual:
        if isinstance(other, Dual):
            m = min(self.size, other.size)
            return Dual(self._values[:m] - other._values[:m])
        if isinstance(other, Real):
            values = self._values.copy()
            values[0] -= float(other)
            return Dual(values)
        return NotImplemented

    def __rsub__(self, other) -> Dual:
        if not isinstance(other, Real):
            return NotImplemented
        return Dual.const(float(other), self.size) - self

    def __mul__(self, other) -> Dual:
        if isinstance(other, Dual):
            if self.is_real or other.is_real:
                return Dual.const(self.value * other.value)
            return Dual._prepend(
                self.value * other.value,
                self.tail() * other.head() + self.head() * other.tail(),
            )
        if isinstance(other, Real):
            return Dual(self._values * float(other))
        return NotImplemented

    def __rmul__(self, other) -> Dual:
        return self * other

    def __truediv__(self, other) -> Dual:
        if isinstance(other, Dual):
            if self.is_real or other.is_real:
                return Dual.const(self.value / other.value)
            return Dual._prepend(
                self.value / other.value,
                (self.tail() * other - self * other.tail()) / (other * other),
            )
        if isinstance(other, Real):
            return Dual(self._values / float(other))
        return NotImplemented

    def __rtruediv__(self, other) -> Dual:
        if not isinstance(other, Real):
            return NotImplemented
        return Dual.const(float(other), self.size) / self

    # Elementary functions

    def function(self, f: Callable[[float], float], df: Callable[[Dual], Dual]) -> Dual:
        """Apply ``f`` given its derivative ``df`` expressed on duals (chain rule)."""
        if self.is_real:
            return Dual.const(f(self.value))
        return Dual._prepend(f(self.value), df(self.head()) * self.tail())

    def sqr(self) -> Dual:
        return self * self

    @staticmethod
    def sin(d: Dual) -> Dual:
        return d.function(math.sin, Dual.cos)

    @staticmethod
    def cos(d: Dual) -> Dual:
        return d.function(math.cos, lambda h: -Dual.sin(h))

    @staticmethod
    def tan(d: Dual) -> Dual:
        return d.function(math.tan, lambda h: (1.0 / Dual.cos(h)).sqr())

    @staticmethod
    def atan(d: Dual) -> Dual:
        return d.function(math.atan, lambda h: 1.0 / (h * h + 1.0))

    @staticmethod
    def log(d: Dual) -> Dual:
        return d.function(math.log, lambda h: 1.0 / h)

    @staticmethod
    def pow(d: Dual, n: float) -> Dual:
        return d.function(lambda x: math.pow(x, n), lambda h: n * Dual.pow(h, n - 1.0))

    @staticmethod
    def sqrt(d: Dual) -> Dual:
        return d.function(math.sqrt, lambda h: 1.0 / (2.0 * Dual.sqrt(h)))
