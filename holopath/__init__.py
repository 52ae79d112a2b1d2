"""
holopath

Motion-planning numerics for holonomic 2D vehicles: quintic Hermite splines,
SE(2) geometry, and a velocity-profile generator that turns sampled paths into
time-indexed trajectories respecting linear, angular and centripetal limits.

Key components:
- build_spline / QuinticSpline: piecewise quintic path through waypoints
- HolonomicSpline: path plus an independent heading spline
- sample_curve: adaptive curvature-aware sampling into curve poses
- generate_trajectory: velocity profile + time-indexed Trajectory
- ArcLengthPreview: cheap trapezoidal playback along the path
"""

from ._version import __version__
from .dual import Dual
from .geometry import CurvePose, Pose, Rotation, Translation, Twist
from .motion import (
    ApproximationEvent,
    ArcLengthPreview,
    Trajectory,
    TrajectoryConstraints,
    TrajectoryPoint,
    generate_profile,
    generate_trajectory,
)
from .splines import (
    ArcParameterizedSpline,
    HolonomicSpline,
    QuinticSpline,
    QuinticSplineSegment,
    Waypoint,
    build_heading_spline,
    build_spline,
    sample_curve,
)
from .units import UnitScalar, UnitVector2
from .utils.errors import (
    ConstraintApproximationError,
    MalformedSplineError,
    SegmentContinuityError,
    TrajectoryGenerationError,
    UnitMismatchError,
)

__all__ = [
    "__version__",
    "Dual",
    "UnitScalar",
    "UnitVector2",
    "Rotation",
    "Translation",
    "Twist",
    "Pose",
    "CurvePose",
    "QuinticSplineSegment",
    "QuinticSpline",
    "Waypoint",
    "build_spline",
    "HolonomicSpline",
    "build_heading_spline",
    "ArcParameterizedSpline",
    "sample_curve",
    "TrajectoryConstraints",
    "TrajectoryPoint",
    "Trajectory",
    "ApproximationEvent",
    "generate_profile",
    "generate_trajectory",
    "ArcLengthPreview",
    "TrajectoryGenerationError",
    "ConstraintApproximationError",
    "MalformedSplineError",
    "SegmentContinuityError",
    "UnitMismatchError",
]
