"""
Adaptive curve sampling.

The parameter range is bisected depth-first (explicit stack) until the SE(2)
twist between the poses at the ends of every interval is small enough. Dense
samples land where the path turns or the heading changes quickly; straight
stretches get few.
"""

import logging
from collections.abc import Callable
from typing import Protocol

from holopath import config
from holopath.geometry import CurvePose, Twist
from holopath.utils.errors import MalformedSplineError

logger = logging.getLogger(__name__)


class CurvePoseSource(Protocol):
    def evaluate_curve_pose(self, progress: float) -> CurvePose: ...


def default_admissible_twist() -> Twist:
    return Twist(config.SAMPLING_ADMISSIBLE_DX, config.SAMPLING_ADMISSIBLE_DY, config.SAMPLING_ADMISSIBLE_DTHETA)


def get_points(
    spline: CurvePoseSource,
    t0: float,
    t1: float,
    t_threshold: float,
    admissible: Twist,
    max_iterations: int,
    split_condition: Callable[[float, float], bool] | None = None,
    max_step: float | None = None,
) -> list[CurvePose]:
    """
    Sample ``spline`` on [t0, t1].

    An interval is accepted once the relative twist between its end poses is
    within ``admissible`` on every axis (and ``split_condition`` and
    ``max_step`` do not ask for more), or once it is no wider than
    ``t_threshold``.

    Args:
        spline: Anything with ``evaluate_curve_pose(progress)``
        t0: Start parameter
        t1: End parameter (> t0)
        t_threshold: Minimum interval width; narrower intervals are always accepted
        admissible: Per-axis bounds |dx|, |dy|, |dθ| (all > 0)
        max_iterations: Maximum number of bisections
        split_condition: Optional extra predicate (a, b) -> split
        max_step: Optional maximum parameter distance between consecutive samples

    Returns:
        Curve poses ordered by parameter, starting at t0 and ending at t1

    Raises:
        ValueError: Invalid admissible twist or parameter range
        MalformedSplineError: More than ``max_iterations`` bisections were needed
    """
    if admissible.dx <= 0 or admissible.dy <= 0 or admissible.d_theta <= 0:
        raise ValueError(f"The admissible twist {admissible} must be positive on every axis")
    if not t1 > t0:
        raise ValueError(f"Invalid parameter range [{t0}, {t1}]")
    if max_iterations <= 0:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}")

    cache: dict[float, CurvePose] = {}

    def pose_at(t: float) -> CurvePose:
        pose = cache.get(t)
        if pose is None:
            pose = spline.evaluate_curve_pose(t)
            cache[t] = pose
        return pose

    results = [pose_at(t0)]
    stack = [(t0, t1)]
    last = t0
    splits = 0

    while stack:
        a, b = stack.pop()
        start = pose_at(a)
        end = pose_at(b)

        split = False
        if b - a > t_threshold:
            twist = start.pose.twist_to(end.pose)
            split = (
                abs(twist.dx) > admissible.dx
                or abs(twist.dy) > admissible.dy
                or abs(twist.d_theta) > admissible.d_theta
                or (max_step is not None and b - last > max_step)
                or (split_condition is not None and split_condition(a, b))
            )

        if split:
            splits += 1
            if splits > max_iterations:
                raise MalformedSplineError(
                    f"exceeded {max_iterations} subdivisions sampling [{t0}, {t1}] (stuck near {a:.6f})"
                )
            mid = (a + b) / 2.0
            stack.append((mid, b))
            stack.append((a, mid))
        else:
            cache.pop(a, None)
            results.append(end)
            last = b

    logger.debug(f"Sampled [{t0}, {t1}] into {len(results)} curve poses with {splits} subdivisions")
    return results


def sample_curve(
    spline: CurvePoseSource,
    admissible: Twist | None = None,
    max_iterations: int | None = None,
    t_threshold: float | None = None,
) -> list[CurvePose]:
    """Sample the whole [0, 1] parameter range with the configured defaults."""
    return get_points(
        spline,
        0.0,
        1.0,
        config.SAMPLING_MIN_WIDTH if t_threshold is None else t_threshold,
        default_admissible_twist() if admissible is None else admissible,
        config.SAMPLING_MAX_ITERATIONS if max_iterations is None else max_iterations,
    )
