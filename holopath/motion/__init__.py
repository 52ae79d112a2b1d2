from .constraints import TrajectoryConstraints
from .preview import ArcLengthPreview
from .profile import ApproximationEvent, generate_profile, generate_trajectory
from .trajectory import Trajectory, TrajectoryPoint

__all__ = [
    "TrajectoryConstraints",
    "TrajectoryPoint",
    "Trajectory",
    "ApproximationEvent",
    "generate_profile",
    "generate_trajectory",
    "ArcLengthPreview",
]
