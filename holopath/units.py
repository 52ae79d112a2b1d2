"""
Unit-tagged scalars and 2D vectors.

A ``UnitScalar`` is a float carrying a unit marker class. Arithmetic between
scalars of different units raises ``UnitMismatchError``; reinterpreting a value
in another unit has to be spelled out with ``mapped_to`` or ``converted``.
Everything else behaves like IEEE-754 doubles, including division by zero,
which yields inf/NaN rather than raising.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Generic, TypeVar

import numpy as np

from holopath.utils.errors import UnitMismatchError


class Unit:
    """Base class for unit markers. Markers are never instantiated."""

    symbol: str = ""

    def __init__(self):
        raise TypeError(f"{type(self).__name__} is a unit marker, use {type(self).__name__}.of()")

    @classmethod
    def of(cls, value: float) -> UnitScalar:
        return UnitScalar(value, cls)

    @classmethod
    def vector(cls, x: float, y: float) -> UnitVector2:
        return UnitVector2(x, y, cls)

    @classmethod
    def zero(cls) -> UnitScalar:
        return UnitScalar(0.0, cls)


class Displacement(Unit):
    symbol = "m"


class Velocity(Unit):
    symbol = "m/s"


class Acceleration(Unit):
    symbol = "m/s^2"


class AngularDisplacement(Unit):
    symbol = "rad"


class AngularVelocity(Unit):
    symbol = "rad/s"


class AngularAcceleration(Unit):
    symbol = "rad/s^2"


class AngleDegrees(Unit):
    symbol = "deg"


class CentripetalAcceleration(Unit):
    symbol = "m/s^2"


class Curvature(Unit):
    symbol = "1/m"


class Percentage(Unit):
    symbol = ""


class Time(Unit):
    symbol = "s"


U = TypeVar("U", bound=Unit)
V = TypeVar("V", bound=Unit)


def ieee_div(a: float, b: float) -> float:
    """Divide following IEEE-754 (x/0 -> +-inf, 0/0 -> nan)."""
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def lerp(a: float, b: float, t: float) -> float:
    return a * (1.0 - t) + b * t


def map_range(value: float, src_min: float, src_max: float, dst_min: float, dst_max: float) -> float:
    return dst_min + ieee_div((value - src_min) * (dst_max - dst_min), src_max - src_min)


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


class UnitScalar(Generic[U]):
    """Immutable real number tagged with a unit marker."""

    __slots__ = ("_value", "_unit")

    def __init__(self, value: float, unit: type[U]):
        object.__setattr__(self, "_value", float(value))
        object.__setattr__(self, "_unit", unit)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def value(self) -> float:
        return self._value

    @property
    def unit(self) -> type[U]:
        return self._unit

    @property
    def is_nan(self) -> bool:
        return math.isnan(self._value)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self._value)

    @property
    def sign(self) -> int:
        if self._value > 0:
            return 1
        if self._value < 0:
            return -1
        return 0

    def _check(self, other: UnitScalar) -> None:
        if other._unit is not self._unit:
            raise UnitMismatchError(
                f"Cannot combine {self._unit.__name__} with {other._unit.__name__}"
            )

    def _other_value(self, other) -> float:
        if isinstance(other, UnitScalar):
            self._check(other)
            return other._value
        if _is_number(other):
            return float(other)
        return NotImplemented

    # Arithmetic

    def __pos__(self) -> UnitScalar[U]:
        return self

    def __neg__(self) -> UnitScalar[U]:
        return UnitScalar(-self._value, self._unit)

    def __abs__(self) -> UnitScalar[U]:
        return UnitScalar(abs(self._value), self._unit)

    def __add__(self, other: UnitScalar[U]) -> UnitScalar[U]:
        if not isinstance(other, UnitScalar):
            return NotImplemented
        self._check(other)
        return UnitScalar(self._value + other._value, self._unit)

    def __sub__(self, other: UnitScalar[U]) -> UnitScalar[U]:
        if not isinstance(other, UnitScalar):
            return NotImplemented
        self._check(other)
        return UnitScalar(self._value - other._value, self._unit)

    def __mul__(self, other) -> UnitScalar[U]:
        value = self._other_value(other)
        if value is NotImplemented:
            return NotImplemented
        return UnitScalar(self._value * value, self._unit)

    def __rmul__(self, other) -> UnitScalar[U]:
        if not _is_number(other):
            return NotImplemented
        return UnitScalar(float(other) * self._value, self._unit)

    def __truediv__(self, other) -> UnitScalar[U]:
        value = self._other_value(other)
        if value is NotImplemented:
            return NotImplemented
        return UnitScalar(ieee_div(self._value, value), self._unit)

    # Comparisons

    def __eq__(self, other) -> bool:
        if not isinstance(other, UnitScalar):
            return NotImplemented
        return self._unit is other._unit and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._value, self._unit))

    def __lt__(self, other) -> bool:
        value = self._other_value(other)
        if value is NotImplemented:
            return NotImplemented
        return self._value < value

    def __le__(self, other) -> bool:
        value = self._other_value(other)
        if value is NotImplemented:
            return NotImplemented
        return self._value <= value

    def __gt__(self, other) -> bool:
        value = self._other_value(other)
        if value is NotImplemented:
            return NotImplemented
        return self._value > value

    def __ge__(self, other) -> bool:
        value = self._other_value(other)
        if value is NotImplemented:
            return NotImplemented
        return self._value >= value

    def __float__(self) -> float:
        return self._value

    def __repr__(self) -> str:
        return f"UnitScalar({self._value!r}, {self._unit.__name__})"

    def __str__(self) -> str:
        return f"{self._value:.4f} {self._unit.symbol}".rstrip()

    # Helpers

    def approx_equals(self, other: UnitScalar[U] | float, tolerance: float = 1e-5) -> bool:
        return abs(self._value - self._other_value(other)) < tolerance

    def squared(self) -> UnitScalar[U]:
        return UnitScalar(self._value * self._value, self._unit)

    def sqrt(self) -> UnitScalar[U]:
        return UnitScalar(math.sqrt(self._value) if self._value >= 0 else math.nan, self._unit)

    def clamped(self, minimum: UnitScalar[U] | float, maximum: UnitScalar[U] | float) -> UnitScalar[U]:
        lo = self._other_value(minimum)
        hi = self._other_value(maximum)
        return UnitScalar(min(max(self._value, lo), hi), self._unit)

    def mapped(self, src_min: float, src_max: float, dst_min: float, dst_max: float) -> UnitScalar[U]:
        return UnitScalar(
            map_range(
                self._value,
                self._other_value(src_min),
                self._other_value(src_max),
                float(dst_min),
                float(dst_max),
            ),
            self._unit,
        )

    def mapped_to(
        self, unit: type[V], src_min: float, src_max: float, dst_min: float, dst_max: float
    ) -> UnitScalar[V]:
        """Map from [src_min, src_max] (this unit) onto [dst_min, dst_max] in ``unit``."""
        return UnitScalar(
            map_range(
                self._value,
                self._other_value(src_min),
                self._other_value(src_max),
                float(dst_min),
                float(dst_max),
            ),
            unit,
        )

    def converted(self, unit: type[V]) -> UnitScalar[V]:
        return UnitScalar(self._value, unit)

    @staticmethod
    def lerp(a: UnitScalar[U], b: UnitScalar[U], t: UnitScalar | float) -> UnitScalar[U]:
        a._check(b)
        return UnitScalar(lerp(a._value, b._value, float(t)), a._unit)

    @staticmethod
    def minimum(a: UnitScalar[U], b: UnitScalar[U]) -> UnitScalar[U]:
        a._check(b)
        return a if a._value <= b._value else b

    @staticmethod
    def maximum(a: UnitScalar[U], b: UnitScalar[U]) -> UnitScalar[U]:
        a._check(b)
        return a if a._value >= b._value else b


class UnitVector2(Generic[U]):
    """Immutable 2D vector whose components share a unit."""

    __slots__ = ("_x", "_y", "_unit")

    def __init__(self, x: float, y: float, unit: type[U]):
        object.__setattr__(self, "_x", float(x))
        object.__setattr__(self, "_y", float(y))
        object.__setattr__(self, "_unit", unit)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def from_array(cls, values, unit: type[U]) -> UnitVector2[U]:
        arr = np.asarray(values, dtype=float).reshape(-1)
        if arr.shape != (2,):
            raise ValueError(f"A vector of size 2 is required, got shape {arr.shape}")
        return cls(arr[0], arr[1], unit)

    @property
    def unit(self) -> type[U]:
        return self._unit

    @property
    def x(self) -> UnitScalar[U]:
        return UnitScalar(self._x, self._unit)

    @property
    def y(self) -> UnitScalar[U]:
        return UnitScalar(self._y, self._unit)

    @property
    def xy(self) -> tuple[float, float]:
        return self._x, self._y

    def to_array(self) -> np.ndarray:
        return np.array([self._x, self._y])

    def _check(self, other: UnitVector2) -> None:
        if other._unit is not self._unit:
            raise UnitMismatchError(
                f"Cannot combine {self._unit.__name__} with {other._unit.__name__}"
            )

    def _scalar(self, other) -> float:
        if isinstance(other, UnitScalar):
            if other.unit is not self._unit:
                raise UnitMismatchError(
                    f"Cannot scale {self._unit.__name__} vector by {other.unit.__name__}"
                )
            return other.value
        if _is_number(other):
            return float(other)
        return NotImplemented

    def __neg__(self) -> UnitVector2[U]:
        return UnitVector2(-self._x, -self._y, self._unit)

    def __pos__(self) -> UnitVector2[U]:
        return self

    def __add__(self, other: UnitVector2[U]) -> UnitVector2[U]:
        if not isinstance(other, UnitVector2):
            return NotImplemented
        self._check(other)
        return UnitVector2(self._x + other._x, self._y + other._y, self._unit)

    def __sub__(self, other: UnitVector2[U]) -> UnitVector2[U]:
        if not isinstance(other, UnitVector2):
            return NotImplemented
        self._check(other)
        return UnitVector2(self._x - other._x, self._y - other._y, self._unit)

    def __mul__(self, other) -> UnitVector2[U]:
        if isinstance(other, UnitVector2):
            self._check(other)
            return UnitVector2(self._x * other._x, self._y * other._y, self._unit)
        k = self._scalar(other)
        if k is NotImplemented:
            return NotImplemented
        return UnitVector2(self._x * k, self._y * k, self._unit)

    def __rmul__(self, other) -> UnitVector2[U]:
        if not _is_number(other):
            return NotImplemented
        return self * other

    def __truediv__(self, other) -> UnitVector2[U]:
        if isinstance(other, UnitVector2):
            self._check(other)
            return UnitVector2(ieee_div(self._x, other._x), ieee_div(self._y, other._y), self._unit)
        k = self._scalar(other)
        if k is NotImplemented:
            return NotImplemented
        return UnitVector2(ieee_div(self._x, k), ieee_div(self._y, k), self._unit)

    def __eq__(self, other) -> bool:
        if not isinstance(other, UnitVector2):
            return NotImplemented
        return self._unit is other._unit and self._x == other._x and self._y == other._y

    def __hash__(self) -> int:
        return hash((self._x, self._y, self._unit))

    def __repr__(self) -> str:
        return f"UnitVector2({self._x!r}, {self._y!r}, {self._unit.__name__})"

    def length_squared(self) -> UnitScalar[U]:
        return UnitScalar(self._x * self._x + self._y * self._y, self._unit)

    def length(self) -> UnitScalar[U]:
        return UnitScalar(math.hypot(self._x, self._y), self._unit)

    def normalized(self) -> UnitVector2[U]:
        return self / math.hypot(self._x, self._y)

    def approx_equals(self, other: UnitVector2[U], tolerance: float = 1e-5) -> bool:
        self._check(other)
        return abs(self._x - other._x) < tolerance and abs(self._y - other._y) < tolerance

    def converted(self, unit: type[V]) -> UnitVector2[V]:
        return UnitVector2(self._x, self._y, unit)

    @staticmethod
    def distance_squared(a: UnitVector2[U], b: UnitVector2[U]) -> UnitScalar[U]:
        return (a - b).length_squared()

    @staticmethod
    def distance(a: UnitVector2[U], b: UnitVector2[U]) -> UnitScalar[U]:
        return (a - b).length()

    @staticmethod
    def lerp(a: UnitVector2[U], b: UnitVector2[U], t: UnitScalar | float) -> UnitVector2[U]:
        a._check(b)
        k = float(t)
        return UnitVector2(lerp(a._x, b._x, k), lerp(a._y, b._y, k), a._unit)


class Interval:
    """Closed real interval; valid when neither bound is NaN and min < max."""

    __slots__ = ("min", "max")

    def __init__(self, minimum: float, maximum: float):
        self.min = float(minimum)
        self.max = float(maximum)

    @property
    def is_valid(self) -> bool:
        return not math.isnan(self.min) and not math.isnan(self.max) and self.min < self.max

    @staticmethod
    def intersect(a: Interval, b: Interval) -> Interval:
        # NaN bounds propagate so the result reports invalid
        lo = math.nan if math.isnan(a.min) or math.isnan(b.min) else max(a.min, b.min)
        hi = math.nan if math.isnan(a.max) or math.isnan(b.max) else min(a.max, b.max)
        return Interval(lo, hi)

    def __repr__(self) -> str:
        return f"Interval({self.min}, {self.max})"


Interval.REALS = Interval(-math.inf, math.inf)  # type: ignore[attr-defined]
Interval.NON_NEGATIVE = Interval(0.0, math.inf)  # type: ignore[attr-defined]
