"""
SE(2) translation, twist and pose, with the exponential and logarithm maps.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import ClassVar

from holopath.config import SMALL_ANGLE_EPS
from holopath.units import Displacement, UnitScalar, UnitVector2, lerp

from .rotation import Rotation


@dataclass(frozen=True)
class Translation:
    """A displacement in the plane, in meters."""

    x: float = 0.0
    y: float = 0.0

    ZERO: ClassVar[Translation]

    @classmethod
    def from_vector(cls, displacement: UnitVector2[Displacement]) -> Translation:
        if displacement.unit is not Displacement:
            raise ValueError(f"Translation requires a Displacement vector, got {displacement.unit.__name__}")
        return cls(*displacement.xy)

    @property
    def displacement(self) -> UnitVector2[Displacement]:
        return UnitVector2(self.x, self.y, Displacement)

    def __add__(self, other: Translation) -> Translation:
        return Translation(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Translation) -> Translation:
        return Translation(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Translation:
        return Translation(-self.x, -self.y)

    def __mul__(self, k: float) -> Translation:
        return Translation(self.x * k, self.y * k)

    def __truediv__(self, k: float) -> Translation:
        return Translation(self.x / k, self.y / k)

    def rotated(self, rotation: Rotation) -> Translation:
        return rotation * self

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    @staticmethod
    def distance(a: Translation, b: Translation) -> UnitScalar[Displacement]:
        return UnitScalar(math.hypot(a.x - b.x, a.y - b.y), Displacement)

    @staticmethod
    def lerp(a: Translation, b: Translation, t: float) -> Translation:
        return Translation(lerp(a.x, b.x, t), lerp(a.y, b.y, t))


Translation.ZERO = Translation()


@dataclass(frozen=True)
class Twist:
    """Element of se(2): body-frame displacement (dx, dy) and heading change."""

    dx: float = 0.0
    dy: float = 0.0
    d_theta: float = 0.0

    def __mul__(self, k: float) -> Twist:
        return Twist(self.dx * k, self.dy * k, self.d_theta * k)

    def approx_equals(self, other: Twist, tolerance: float = 1e-9) -> bool:
        return (
            abs(self.dx - other.dx) <= tolerance
            and abs(self.dy - other.dy) <= tolerance
            and abs(self.d_theta - other.d_theta) <= tolerance
        )


@dataclass(frozen=True)
class Pose:
    """Rigid 2D transform: rotate by ``rotation`` then move by ``translation``."""

    translation: Translation = field(default_factory=Translation)
    rotation: Rotation = field(default_factory=Rotation)

    IDENTITY: ClassVar[Pose]

    @classmethod
    def from_xy(cls, x: float, y: float, angle: float = 0.0) -> Pose:
        return cls(Translation(x, y), Rotation.exp(angle))

    @property
    def x(self) -> float:
        return self.translation.x

    @property
    def y(self) -> float:
        return self.translation.y

    @property
    def heading(self) -> float:
        return self.rotation.log()

    def __mul__(self, other: Pose) -> Pose:
        """Composition ``self ∘ other``."""
        if not isinstance(other, Pose):
            return NotImplemented
        return Pose(
            self.translation + self.rotation * other.translation,
            self.rotation * other.rotation,
        )

    @property
    def inverse(self) -> Pose:
        inv = self.rotation.inverse
        return Pose(-(inv * self.translation), inv)

    def relative_to(self, other: Pose) -> Pose:
        """``self⁻¹ ∘ other``: ``other`` expressed in this pose's frame."""
        return self.inverse * other

    @staticmethod
    def exp(twist: Twist) -> Pose:
        """Pose reached from the identity by following ``twist`` for unit time."""
        d_theta = twist.d_theta
        sin_theta = math.sin(d_theta)
        cos_theta = math.cos(d_theta)

        if abs(d_theta) < SMALL_ANGLE_EPS:
            s = 1.0 - d_theta * d_theta / 6.0
            c = 0.5 * d_theta
        else:
            s = sin_theta / d_theta
            c = 2.0 * math.sin(0.5 * d_theta) ** 2 / d_theta

        return Pose(
            Translation(twist.dx * s - twist.dy * c, twist.dx * c + twist.dy * s),
            Rotation(cos_theta, sin_theta),
        )

    @staticmethod
    def log(pose: Pose) -> Twist:
        """Twist whose exponential is ``pose``."""
        d_theta = pose.rotation.log()
        half_d_theta = d_theta / 2.0
        cos_minus_one = -2.0 * math.sin(half_d_theta) ** 2

        if abs(cos_minus_one) < SMALL_ANGLE_EPS:
            half_theta_by_tan = 1.0 - d_theta * d_theta / 12.0
        else:
            half_theta_by_tan = -(half_d_theta * pose.rotation.sin) / cos_minus_one

        x = pose.translation.x
        y = pose.translation.y
        return Twist(
            x * half_theta_by_tan + y * half_d_theta,
            -x * half_d_theta + y * half_theta_by_tan,
            d_theta,
        )

    def integrate(self, twist: Twist) -> Pose:
        """``self ∘ exp(twist)``."""
        return self * Pose.exp(twist)

    def twist_to(self, end: Pose) -> Twist:
        """``log(self⁻¹ ∘ end)``: the body twist carrying this pose onto ``end``."""
        return Pose.log(self.relative_to(end))

    @staticmethod
    def interpolate(a: Pose, b: Pose, t: float) -> Pose:
        """Constant-twist (SE(2) geodesic) interpolation."""
        if t <= 0:
            return a
        if t >= 1:
            return b
        return a.integrate(a.twist_to(b) * t)

    @staticmethod
    def lerp(a: Pose, b: Pose, t: float) -> Pose:
        """Straight-line translation, shortest-arc heading."""
        t = min(max(float(t), 0.0), 1.0)
        if t == 0.0:
            return a
        if t == 1.0:
            return b
        return Pose(
            Translation.lerp(a.translation, b.translation, t),
            Rotation.interpolate(a.rotation, b.rotation, t),
        )

    def approx_equals(self, other: Pose, tolerance: float = 1e-9) -> bool:
        return (
            abs(self.translation.x - other.translation.x) <= tolerance
            and abs(self.translation.y - other.translation.y) <= tolerance
            and abs(self.rotation.delta(other.rotation)) <= tolerance
        )


Pose.IDENTITY = Pose()


@dataclass(frozen=True)
class CurvePose:
    """A pose sampled on a curve, with the path curvature there and its curve parameter."""

    pose: Pose
    curvature: float
    parameter: float
