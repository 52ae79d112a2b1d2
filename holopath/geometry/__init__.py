from .pose import CurvePose, Pose, Translation, Twist
from .rotation import Rotation

__all__ = [
    "Rotation",
    "Translation",
    "Twist",
    "Pose",
    "CurvePose",
]
