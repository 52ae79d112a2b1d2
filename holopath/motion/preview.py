"""
Quick playback along a spline without generating a full velocity profile.

The path is traversed by arc length under a rest-to-rest trapezoid with the
given speed and acceleration limits; curvature and heading limits are ignored.
"""

import logging

from holopath.geometry import Pose
from holopath.splines.arc import ArcParameterizedSpline
from holopath.splines.holonomic import HolonomicSpline
from holopath.splines.quintic import QuinticSpline
from holopath.units import Time, UnitScalar
from holopath.utils.trajectory import plan_trapezoid_position_1d, trapezoid_distance, trapezoid_timings

logger = logging.getLogger(__name__)


class ArcLengthPreview:
    def __init__(
        self,
        spline: QuinticSpline | HolonomicSpline,
        max_velocity: float,
        max_acceleration: float,
        samples: int | None = None,
    ):
        if not max_velocity > 0 or not max_acceleration > 0:
            raise ValueError(
                f"Preview limits must be positive, got v={max_velocity}, a={max_acceleration}"
            )

        if isinstance(spline, HolonomicSpline):
            self._holonomic: HolonomicSpline | None = spline
            translation = spline.translation
        else:
            self._holonomic = None
            translation = spline

        self._arc = ArcParameterizedSpline(translation, samples)
        self.max_velocity = float(max_velocity)
        self.max_acceleration = float(max_acceleration)
        self._length = self._arc.arc_length.value
        self._duration = trapezoid_timings(self._length, self.max_velocity, self.max_acceleration)[0]
        logger.debug(f"Preview over {self._length:.4f} m takes {self._duration:.4f} s")

    @property
    def arc_length(self) -> float:
        return self._length

    @property
    def duration(self) -> UnitScalar[Time]:
        return UnitScalar(self._duration, Time)

    def distance(self, time: float) -> float:
        """Distance travelled along the path at ``time``."""
        return trapezoid_distance(float(time), self._length, self.max_velocity, self.max_acceleration)

    def evaluate(self, time: float | UnitScalar[Time]) -> Pose | None:
        """Pose at ``time``, or None once the playback is over."""
        t = float(time)
        if t > self._duration:
            return None

        return self._pose_at(self.distance(t))

    def playback(self, sample_rate: float | None = None) -> list[Pose]:
        """Poses at evenly spaced times over the whole preview."""
        distances = plan_trapezoid_position_1d(
            0.0, self._length, self.max_velocity, self.max_acceleration, sample_rate
        )
        return [self._pose_at(d) for d in distances]

    def _pose_at(self, distance: float) -> Pose:
        parameter = self._arc.evaluate_parameter(distance)
        if self._holonomic is not None:
            return self._holonomic.evaluate_pose(parameter)

        return self._arc.spline.evaluate_pose(parameter)
