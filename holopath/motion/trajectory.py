"""
Time-indexed trajectory built on a segment tree of consecutive point pairs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from os import PathLike

import numpy as np
from numpy.lib import recfunctions

from holopath.geometry import CurvePose, Pose, Translation
from holopath.units import (
    Acceleration,
    AngularAcceleration,
    AngularDisplacement,
    AngularVelocity,
    Curvature,
    Displacement,
    Time,
    UnitScalar,
    UnitVector2,
    Velocity,
    lerp,
    map_range,
)
from holopath.utils.segment_tree import SegmentRange, SegmentTree, SegmentTreeBuilder
from holopath.utils.trajectory import sample_times

logger = logging.getLogger(__name__)

PROFILE_FIELDS: tuple[str, ...] = (
    "time",
    "x",
    "y",
    "heading",
    "parameter",
    "path_curvature",
    "rotation_curvature",
    "displacement",
    "angular_displacement",
    "speed",
    "velocity_x",
    "velocity_y",
    "acceleration_x",
    "acceleration_y",
    "angular_velocity",
    "angular_acceleration",
)


@dataclass(frozen=True)
class TrajectoryPoint:
    """
    One time-stamped state of the vehicle.

    ``rotation_curvature`` is dθ/ds of the heading, which differs from the
    path curvature whenever the heading is not tangent to the path.
    ``speed`` is the scalar path velocity chosen by the profile; ``velocity``
    and the other dynamic fields are recovered from the time stamps.
    """

    curve_pose: CurvePose
    rotation_curvature: UnitScalar[Curvature]
    displacement: UnitScalar[Displacement]
    angular_displacement: UnitScalar[AngularDisplacement]
    time: UnitScalar[Time]
    speed: UnitScalar[Velocity]
    velocity: UnitVector2[Velocity]
    acceleration: UnitVector2[Acceleration]
    angular_velocity: UnitScalar[AngularVelocity]
    angular_acceleration: UnitScalar[AngularAcceleration]

    @property
    def pose(self) -> Pose:
        return self.curve_pose.pose

    @property
    def translation(self) -> Translation:
        return self.curve_pose.pose.translation

    def as_row(self) -> tuple[float, ...]:
        """Values in PROFILE_FIELDS order."""
        pose = self.curve_pose.pose
        return (
            self.time.value,
            pose.x,
            pose.y,
            pose.heading,
            self.curve_pose.parameter,
            self.curve_pose.curvature,
            self.rotation_curvature.value,
            self.displacement.value,
            self.angular_displacement.value,
            self.speed.value,
            *self.velocity.xy,
            *self.acceleration.xy,
            self.angular_velocity.value,
            self.angular_acceleration.value,
        )


def interpolate_points(a: TrajectoryPoint, b: TrajectoryPoint, progress: float) -> TrajectoryPoint:
    """Blend two points; the pose goes through ``Pose.lerp`` so headings never wrap the long way."""
    return TrajectoryPoint(
        curve_pose=CurvePose(
            Pose.lerp(a.curve_pose.pose, b.curve_pose.pose, progress),
            lerp(a.curve_pose.curvature, b.curve_pose.curvature, progress),
            lerp(a.curve_pose.parameter, b.curve_pose.parameter, progress),
        ),
        rotation_curvature=UnitScalar.lerp(a.rotation_curvature, b.rotation_curvature, progress),
        displacement=UnitScalar.lerp(a.displacement, b.displacement, progress),
        angular_displacement=UnitScalar.lerp(a.angular_displacement, b.angular_displacement, progress),
        time=UnitScalar.lerp(a.time, b.time, progress),
        speed=UnitScalar.lerp(a.speed, b.speed, progress),
        velocity=UnitVector2.lerp(a.velocity, b.velocity, progress),
        acceleration=UnitVector2.lerp(a.acceleration, b.acceleration, progress),
        angular_velocity=UnitScalar.lerp(a.angular_velocity, b.angular_velocity, progress),
        angular_acceleration=UnitScalar.lerp(a.angular_acceleration, b.angular_acceleration, progress),
    )


class Trajectory:
    """
    Immutable trajectory answering ``evaluate(time)`` in O(log n).

    Each consecutive pair of points is a leaf keyed by its time range.
    """

    def __init__(self, points: Sequence[TrajectoryPoint]):
        if len(points) < 2:
            raise ValueError(f"Cannot build a trajectory from {len(points)} point(s)")

        self._points = tuple(points)
        builder: SegmentTreeBuilder[tuple[TrajectoryPoint, TrajectoryPoint]] = SegmentTreeBuilder()
        for a, b in zip(self._points[:-1], self._points[1:]):
            builder.insert((a, b), SegmentRange(a.time.value, b.time.value))
        self._segments: SegmentTree[tuple[TrajectoryPoint, TrajectoryPoint]] = builder.build()

    @property
    def points(self) -> tuple[TrajectoryPoint, ...]:
        return self._points

    @property
    def time_range(self) -> SegmentRange:
        return self._segments.range

    @property
    def duration(self) -> UnitScalar[Time]:
        return UnitScalar(self._segments.range.length, Time)

    def __len__(self) -> int:
        return len(self._points)

    def evaluate(self, time: float | UnitScalar[Time]) -> TrajectoryPoint:
        """State at ``time``, clamped to the time range."""
        t = float(time)
        start, end = self._segments.range.start, self._segments.range.end
        t = min(max(t, start), end)
        a, b = self._segments.query(t)
        progress = map_range(t, a.time.value, b.time.value, 0.0, 1.0)
        return interpolate_points(a, b, progress)

    def sample(self, control_rate: float | None = None) -> list[TrajectoryPoint]:
        """States at evenly spaced timestamps covering the whole trajectory."""
        times = sample_times(self._segments.range.start, self._segments.range.end, control_rate)
        return [self.evaluate(t) for t in times]

    def profile_table(self) -> np.ndarray:
        """Structured array with one record per point, fields as in PROFILE_FIELDS."""
        dtype = np.dtype([(name, np.float64) for name in PROFILE_FIELDS])
        return np.array([p.as_row() for p in self._points], dtype=dtype)

    def export_csv(self, path: str | PathLike) -> None:
        """Write the per-point profile as CSV with a header row."""
        table = recfunctions.structured_to_unstructured(self.profile_table())
        np.savetxt(path, table, delimiter=",", header=",".join(PROFILE_FIELDS), comments="", fmt="%.10g")
        logger.debug(f"Exported {len(self._points)} profile rows to {path}")
