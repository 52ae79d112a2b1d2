from .arc import ArcParameterizedSpline
from .hermite import (
    hermite_quintic,
    hermite_quintic_basis,
    hermite_quintic_curvature,
    hermite_quintic_derivative1,
    hermite_quintic_derivative2,
    uniform_indices,
)
from .holonomic import HolonomicSpline, build_heading_spline
from .mapped import QuinticSplineMapped, QuinticSplineMappedBuilder
from .quintic import QuinticSpline, QuinticSplineSegment, Waypoint, build_spline
from .sampling import get_points, sample_curve

__all__ = [
    "hermite_quintic",
    "hermite_quintic_derivative1",
    "hermite_quintic_derivative2",
    "hermite_quintic_basis",
    "hermite_quintic_curvature",
    "uniform_indices",
    "QuinticSplineSegment",
    "QuinticSpline",
    "Waypoint",
    "build_spline",
    "QuinticSplineMapped",
    "QuinticSplineMappedBuilder",
    "HolonomicSpline",
    "build_heading_spline",
    "ArcParameterizedSpline",
    "get_points",
    "sample_curve",
]
