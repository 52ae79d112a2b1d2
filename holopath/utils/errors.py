"""
Custom exception types for the holopath planning pipeline.
Keep this focused and non-redundant; prefer built-ins where appropriate.
"""


class TrajectoryGenerationError(RuntimeError):
    """Velocity profile / time parameterization failure."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Trajectory Generation Error: {message}")

    def __str__(self):
        return f"Trajectory Generation Error: {self.original_message}"


class ConstraintApproximationError(TrajectoryGenerationError):
    """No admissible velocity existed at a profile point and approximation is disabled."""

    def __init__(self, message: str, index: int):
        self.index = index
        super().__init__(message)


class MalformedSplineError(RuntimeError):
    """Adaptive sampling could not converge (cusp, degenerate segment, ...)."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Malformed Spline: {message}")

    def __str__(self):
        return f"Malformed Spline: {self.original_message}"


class SegmentContinuityError(ValueError):
    """Keyed segments do not form a gap-free ascending sequence."""


class UnitMismatchError(TypeError):
    """Arithmetic or comparison between quantities of different units."""
