"""
Kinematic limits of a holonomic vehicle.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .trajectory import TrajectoryPoint

_LIMITS = (
    ("max_linear_velocity", "Max translational velocity"),
    ("max_linear_acceleration", "Max translational acceleration"),
    ("max_angular_velocity", "Max angular velocity"),
    ("max_angular_acceleration", "Max angular acceleration"),
    ("max_centripetal_acceleration", "Max centripetal acceleration"),
    ("max_linear_deceleration", "Max translational deceleration"),
)


@dataclass(frozen=True)
class TrajectoryConstraints:
    """
    Limits used by the profile generator. All must be strictly positive.

    Plain floats or unit scalars are accepted; values are stored as floats.
    Deceleration defaults to the acceleration limit.
    """

    max_linear_velocity: float
    max_linear_acceleration: float
    max_angular_velocity: float
    max_angular_acceleration: float
    max_centripetal_acceleration: float
    max_linear_deceleration: float | None = None

    def __post_init__(self):
        if self.max_linear_deceleration is None:
            object.__setattr__(self, "max_linear_deceleration", self.max_linear_acceleration)

        for name, label in _LIMITS:
            value = float(getattr(self, name))
            # NaN fails this comparison too
            if not value > 0 or math.isinf(value):
                raise ValueError(f"{label} must be positive and finite, got {value}")
            object.__setattr__(self, name, value)

    def as_dict(self) -> dict[str, float]:
        return {name: float(getattr(self, name)) for name, _ in _LIMITS}

    def validate(self, points: Sequence[TrajectoryPoint], tolerance: float = 1e-6) -> dict[str, float | bool]:
        """
        Check a generated profile against these limits.

        Speed and centripetal acceleration use the profile speed; tangential
        acceleration comes from consecutive speeds over the travelled distance,
        angular rates from the resampled point fields.

        Returns:
            Dictionary with validation results
        """
        if len(points) < 2:
            return {
                "velocity_ok": True,
                "acceleration_ok": True,
                "angular_velocity_ok": True,
                "angular_acceleration_ok": True,
                "centripetal_ok": True,
                "max_velocity": 0.0,
                "max_acceleration": 0.0,
                "max_deceleration": 0.0,
                "max_angular_velocity": 0.0,
                "max_angular_acceleration": 0.0,
                "max_centripetal_acceleration": 0.0,
            }

        speed = np.array([p.speed.value for p in points])
        displacement = np.array([p.displacement.value for p in points])
        curvature = np.array([p.curve_pose.curvature for p in points])
        omega = np.array([p.angular_velocity.value for p in points])
        alpha = np.array([p.angular_acceleration.value for p in points])

        tangential = np.diff(speed**2) / (2.0 * np.diff(displacement))
        centripetal = speed**2 * np.abs(curvature)

        max_acc = float(np.max(tangential, initial=0.0))
        max_dec = float(-np.min(tangential, initial=0.0))

        return {
            "velocity_ok": bool(np.all(speed <= self.max_linear_velocity + tolerance)),
            "acceleration_ok": bool(
                max_acc <= self.max_linear_acceleration + tolerance
                and max_dec <= self.max_linear_deceleration + tolerance
            ),
            "angular_velocity_ok": bool(np.all(np.abs(omega) <= self.max_angular_velocity + tolerance)),
            "angular_acceleration_ok": bool(np.all(np.abs(alpha) <= self.max_angular_acceleration + tolerance)),
            "centripetal_ok": bool(np.all(centripetal <= self.max_centripetal_acceleration + tolerance)),
            "max_velocity": float(np.max(speed)),
            "max_acceleration": max_acc,
            "max_deceleration": max_dec,
            "max_angular_velocity": float(np.max(np.abs(omega))),
            "max_angular_acceleration": float(np.max(np.abs(alpha))),
            "max_centripetal_acceleration": float(np.max(centripetal)),
        }
