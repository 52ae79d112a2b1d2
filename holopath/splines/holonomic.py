"""
Holonomic path: translation spline plus an independent heading spline.
"""

import logging
import math
from collections.abc import Iterable

from holopath.geometry import CurvePose, Pose, Rotation

from .mapped import QuinticSplineMapped, QuinticSplineMappedBuilder
from .quintic import QuinticSpline

logger = logging.getLogger(__name__)

# Heading knots closer than this in parameter are treated as duplicates
HEADING_KEY_EPS = 1e-6


def _wrap(angle: float) -> float:
    return math.atan2(math.sin(angle), math.cos(angle))


def build_heading_spline(knots: Iterable[tuple[float, float]]) -> QuinticSplineMapped:
    """
    Build a 1D heading spline keyed by the translation parameter.

    Args:
        knots: (parameter, heading angle in radians) pairs, any order

    Returns:
        Mapped spline of the unwrapped heading, so that consecutive knots are
        joined along the shortest turn
    """
    ordered = sorted(((float(k), float(a)) for k, a in knots), key=lambda knot: knot[0])

    builder = QuinticSplineMappedBuilder(1)
    previous_key = None
    previous_angle = 0.0
    for key, angle in ordered:
        if previous_key is not None:
            if abs(key - previous_key) <= HEADING_KEY_EPS:
                logger.debug(f"Skipping heading knot at {key}: duplicates parameter {previous_key}")
                continue
            angle = previous_angle + _wrap(angle - previous_angle)
        builder.add(key, [angle])
        previous_key = key
        previous_angle = angle

    return builder.build()


class HolonomicSpline:
    """
    Curve-pose source for a holonomic vehicle.

    Position and path curvature come from the translation spline. The pose
    heading follows the heading spline when one is given, else the path tangent.
    """

    def __init__(self, translation: QuinticSpline, heading: QuinticSplineMapped | None = None):
        if translation.dimensions != 2:
            raise ValueError(f"Translation spline must be 2D, got {translation.dimensions}D")
        if heading is not None and heading.dimensions != 1:
            raise ValueError(f"Heading spline must be 1D, got {heading.dimensions}D")
        self.translation = translation
        self.heading = heading

    def evaluate_rotation(self, progress: float) -> Rotation:
        if self.heading is None or self.heading.is_empty:
            return self.translation.tangent_rotation(progress)
        return Rotation.exp(float(self.heading.evaluate(progress)[0]))

    def evaluate_pose(self, progress: float) -> Pose:
        return Pose(self.translation.evaluate_translation(progress), self.evaluate_rotation(progress))

    def evaluate_curve_pose(self, progress: float) -> CurvePose:
        return CurvePose(
            self.evaluate_pose(progress),
            self.translation.evaluate_curvature(progress),
            float(progress),
        )
