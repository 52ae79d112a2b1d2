from .errors import (
    ConstraintApproximationError,
    MalformedSplineError,
    SegmentContinuityError,
    TrajectoryGenerationError,
    UnitMismatchError,
)
from .segment_tree import SegmentRange, SegmentTree, SegmentTreeBuilder

__all__ = [
    "TrajectoryGenerationError",
    "ConstraintApproximationError",
    "MalformedSplineError",
    "SegmentContinuityError",
    "UnitMismatchError",
    "SegmentRange",
    "SegmentTree",
    "SegmentTreeBuilder",
]
