"""
Planar rotation stored as a unit complex number.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, overload

from holopath.units import AngleDegrees, AngularDisplacement, Displacement, UnitScalar, UnitVector2

if TYPE_CHECKING:
    from .pose import Translation


@dataclass(frozen=True)
class Rotation:
    """
    Heading as (cos, sin).

    The pair is not renormalized after composition; products of unit complex
    numbers stay on the unit circle up to rounding.
    """

    cos: float = 1.0
    sin: float = 0.0

    IDENTITY: ClassVar[Rotation]

    @classmethod
    def exp(cls, angle: float | UnitScalar) -> Rotation:
        theta = float(angle)
        return cls(math.cos(theta), math.sin(theta))

    @classmethod
    def from_direction(cls, x, y=None) -> Rotation:
        """
        Heading of a direction vector (``atan2(y, x)`` semantics).

        Accepts ``(x, y)`` floats, a UnitVector2 or any 2-sequence. The unit
        complex number is built from the normalized vector directly; a zero
        vector maps to the identity like ``atan2(0, 0) == 0``.
        """
        if y is None:
            if isinstance(x, UnitVector2):
                x, y = x.xy
            else:
                x, y = float(x[0]), float(x[1])
        x = float(x)
        y = float(y)
        norm = math.hypot(x, y)
        if norm == 0.0 or not math.isfinite(norm):
            return cls.exp(math.atan2(y, x))
        return cls(x / norm, y / norm)

    def log(self) -> float:
        """Angle in (-pi, pi]."""
        return math.atan2(self.sin, self.cos)

    @property
    def angle(self) -> UnitScalar[AngularDisplacement]:
        return UnitScalar(self.log(), AngularDisplacement)

    @property
    def degrees(self) -> UnitScalar[AngleDegrees]:
        return UnitScalar(math.degrees(self.log()), AngleDegrees)

    @property
    def inverse(self) -> Rotation:
        return Rotation(self.cos, -self.sin)

    @property
    def direction(self) -> UnitVector2[Displacement]:
        return UnitVector2(self.cos, self.sin, Displacement)

    def scaled(self, k: float) -> Rotation:
        return Rotation.exp(self.log() * k)

    @overload
    def __mul__(self, other: Rotation) -> Rotation: ...

    @overload
    def __mul__(self, other: Translation) -> Translation: ...

    def __mul__(self, other):
        from .pose import Translation

        if isinstance(other, Rotation):
            return Rotation(
                self.cos * other.cos - self.sin * other.sin,
                self.cos * other.sin + self.sin * other.cos,
            )
        if isinstance(other, Translation):
            return Translation(
                self.cos * other.x - self.sin * other.y,
                self.sin * other.x + self.cos * other.y,
            )
        return NotImplemented

    def delta(self, other: Rotation) -> float:
        """Signed shortest angle taking this heading onto ``other``."""
        return (self.inverse * other).log()

    def approx_equals(self, other: Rotation, tolerance: float = 1e-9) -> bool:
        return abs(self.cos - other.cos) <= tolerance and abs(self.sin - other.sin) <= tolerance

    @staticmethod
    def interpolate(a: Rotation, b: Rotation, t: float) -> Rotation:
        """Interpolate on the shortest arc from ``a`` to ``b``."""
        return a * Rotation.exp(a.delta(b) * float(t))

    def __repr__(self) -> str:
        return f"Rotation({self.degrees.value:.4f} deg)"


Rotation.IDENTITY = Rotation()
