"""
Velocity-profile generator for holonomic paths.

Given adaptively sampled curve poses and a set of kinematic limits, assigns a
path speed to every sample and integrates it into time stamps:

1. Path metrics: cumulative distance, signed heading change and the rotation
   curvature dθ/ds between samples.
2. Upper bounds: a curvature-coupled bound that keeps the angular acceleration
   limit reachable (forward and backward sweeps, ends at rest), then the
   angular velocity bound ω_max/|κ_rot| and the centripetal bound
   sqrt(a_c/|κ_path|).
3. Combined pass: forward with the acceleration limit and backward with the
   deceleration limit, picking the fastest speed admissible for both the
   translational and the rotational acceleration limits.
4. Time integration under constant acceleration between samples.
5. Velocities and accelerations recovered by finite differences of the
   time-stamped samples.

The coupled bounds follow the closed-form analysis for holonomic platforms in
Sprunk, "Planning Motion Trajectories for Mobile Robots Using Splines" (2008).
"""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import numpy as np

from holopath import config
from holopath.config import TRACE, resolve_approximation_policy
from holopath.geometry import CurvePose
from holopath.units import (
    Acceleration,
    AngularAcceleration,
    AngularDisplacement,
    AngularVelocity,
    Curvature,
    Displacement,
    Interval,
    Time,
    UnitScalar,
    UnitVector2,
    Velocity,
)
from holopath.utils.errors import ConstraintApproximationError, TrajectoryGenerationError

from .constraints import TrajectoryConstraints
from .trajectory import Trajectory, TrajectoryPoint

logger = logging.getLogger(__name__)

# Interval endpoints slightly below zero still count as fallback candidates
FALLBACK_CANDIDATE_FLOOR = -1e-3


@dataclass(frozen=True)
class ApproximationEvent:
    """
    The combined pass found no admissible speed at ``index``.

    ``chosen_velocity`` is the midpoint substituted for it and ``gap`` the
    distance between the two interval boundaries it was taken from.
    """

    index: int
    chosen_velocity: float
    gap: float


@dataclass
class _PathMetrics:
    displacement: np.ndarray
    angular_displacement: np.ndarray
    rotation_curvature: np.ndarray
    path_curvature: np.ndarray
    positions: np.ndarray


def _path_metrics(poses: Sequence[CurvePose]) -> _PathMetrics:
    n = len(poses)
    positions = np.array([(p.pose.x, p.pose.y) for p in poses], dtype=float)
    path_curvature = np.array([p.curvature for p in poses], dtype=float)

    if not np.all(np.isfinite(positions)):
        raise TrajectoryGenerationError("Path contains non-finite positions")
    if not np.all(np.isfinite(path_curvature)):
        raise TrajectoryGenerationError("Path contains non-finite curvature")

    steps = np.hypot(*np.diff(positions, axis=0).T)
    zero = np.flatnonzero(steps == 0.0)
    if zero.size:
        i = int(zero[0]) + 1
        raise TrajectoryGenerationError(f"Path points {i - 1} and {i} have zero displacement")

    # Wrapped heading change between consecutive samples
    d_theta = np.array([poses[i - 1].pose.rotation.delta(poses[i].pose.rotation) for i in range(1, n)])

    displacement = np.concatenate(([0.0], np.cumsum(steps)))
    angular_displacement = np.concatenate(([0.0], np.cumsum(d_theta)))
    rotation_curvature = np.concatenate(([0.0], d_theta / steps))

    return _PathMetrics(displacement, angular_displacement, rotation_curvature, path_curvature, positions)


def coupled_velocity_bound(c_i1: float, c_i: float, ds: float, at_max: float, aw_max: float, v_max: float) -> float:
    """
    Speed threshold at a sample with rotation curvature ``c_i1`` next to a
    neighbour with rotation curvature ``c_i``, ``ds`` apart.

    Above the threshold the neighbour cannot be reached without exceeding the
    angular acceleration limit for any admissible translational acceleration.
    Sub-results that are undefined (NaN) are ignored by the min/max
    combinations; only a NaN final threshold is an error.
    """
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        ci = np.float64(c_i)
        ci1 = np.float64(c_i1)
        ds = np.float64(ds)
        at = np.float64(at_max)
        aw = np.float64(aw_max)
        inf = np.float64(math.inf)
        sqrt = np.sqrt
        fmin = np.fmin
        fmax = np.fmax

        thresh = np.float64(v_max)

        if ci > 0 and ci1 >= 0:
            if ci > ci1:
                thresh = sqrt(2 * ds * (aw + ci * at) ** 2 / ((at * (ci + ci1) + 2 * aw) * (ci - ci1)))
            elif ci < ci1:
                thresh1 = sqrt(8 * ci * aw * ds / (ci1 + ci) ** 2)
                tmp1 = sqrt(4 * ci * ds * (ci * at + aw) / (ci1 - ci) ** 2)
                tmp2 = sqrt(2 * ds * (ci * at + aw) ** 2 / ((ci1 - ci) * (2 * aw + (ci1 + ci) * at)))
                thresh_tmp1 = fmin(tmp1, tmp2)
                thresh_tmp2 = fmin(sqrt(2 * aw * ds / ci1), sqrt(2 * at * ds))
                thresh_tmp3 = -inf
                tmp = fmin(2 * aw * ds / ci1, 2 * ds * (ci * at - aw) ** 2 / ((ci1 - ci) * (2 * aw - (ci1 + ci) * at)))
                if tmp > (-4 * ci * ds * (ci * at - aw)) / ((ci1 - ci) * (ci1 + ci)) and tmp > 2 * at * ds:
                    thresh_tmp3 = sqrt(tmp)
                thresh = fmax(fmax(thresh1, thresh_tmp1), fmax(thresh_tmp2, thresh_tmp3))
            else:
                thresh = inf
        elif ci < 0 and ci1 <= 0:
            if ci > ci1:
                thresh1 = sqrt(-8 * ci * aw * ds / (ci1 + ci) ** 2)
                tmp1 = sqrt(-4 * ci * ds * (aw - ci * at) / ((ci1 + ci) * (ci1 - ci)))
                tmp2 = sqrt(-2 * ds * (aw - ci * at) ** 2 / ((ci1 - ci) * (2 * aw - (ci1 + ci) * at)))
                thresh_tmp1 = fmin(tmp1, tmp2)
                thresh_tmp2 = fmin(sqrt(-2 * aw * ds / ci1), sqrt(2 * at * ds))
                thresh_tmp3 = -inf
                tmp = fmin(-2 * aw * ds / ci1, -2 * ds * (ci * at - aw) ** 2 / ((ci1 - ci) * (2 * aw + (ci1 + ci) * at)))
                if tmp > (-4 * ci * ds * (aw + ci * at)) / ((ci1 - ci) * (ci1 + ci)) and tmp > 2 * at * ds:
                    thresh_tmp3 = sqrt(tmp)
                thresh = fmax(fmax(thresh1, thresh_tmp1), fmax(thresh_tmp2, thresh_tmp3))
            elif ci < ci1:
                thresh = sqrt(-2 * ds * (aw - ci * at) ** 2 / ((ci1 - ci) * ((ci + ci1) * at - 2 * aw)))
            else:
                thresh = inf
        elif ci < 0 and ci1 > 0:
            v2_star = sqrt(2 * ds * aw / ci1)
            precondition = inf
            if ci1 + ci < 0:
                precondition = sqrt(-4 * ci * ds * (ci * at - aw) / ((ci1 - ci) * (ci1 + ci)))
            tmp = fmin(precondition, sqrt(-2 * ds * (ci * at - aw) ** 2 / ((ci1 - ci) * ((ci1 + ci) * at - 2 * aw))))
            tmp = fmax(tmp, sqrt(2 * ds * at))
            thresh = fmin(tmp, v2_star)
        elif ci > 0 and ci1 < 0:
            v1_star = sqrt(-(2 * ds * aw / ci1))
            precondition = inf
            if ci1 + ci > 0:
                precondition = sqrt(-4 * ci * ds * (aw + ci * at) / ((ci1 - ci) * (ci1 + ci)))
            tmp = fmin(precondition, sqrt(-2 * ds * (aw + ci * at) ** 2 / ((ci1 - ci) * ((ci1 + ci) * at + 2 * aw))))
            tmp = fmax(tmp, sqrt(2 * ds * at))
            thresh = fmin(tmp, v1_star)
        elif ci == 0 and ci1 == 0:
            thresh = inf
        elif ci == 0 and ci1 > 0:
            v2_hat = sqrt(2 * ds * aw / ci1)
            tmp = fmax(sqrt(2 * ds * at), sqrt(-2 * ds * aw**2 / (ci1 * (ci1 * at - 2 * aw))))
            thresh = fmin(v2_hat, tmp)
        elif ci == 0 and ci1 < 0:
            v1_hat = sqrt(-(2 * ds * aw / ci1))
            tmp = fmax(sqrt(2 * ds * at), sqrt(-2 * ds * aw**2 / (ci1 * (ci1 * at + 2 * aw))))
            thresh = fmin(v1_hat, tmp)
        else:
            raise TrajectoryGenerationError(f"Unexpected rotation curvatures {c_i} and {c_i1}")

    if math.isnan(thresh):
        raise TrajectoryGenerationError(f"Coupled velocity bound is NaN for curvatures {c_i1} -> {c_i}, ds={ds}")
    return float(thresh)


def _upper_bounds(metrics: _PathMetrics, constraints: TrajectoryConstraints) -> np.ndarray:
    n = metrics.displacement.size
    curvature = metrics.rotation_curvature
    s = metrics.displacement
    at_max = constraints.max_linear_acceleration
    aw_max = constraints.max_angular_acceleration
    v_max = constraints.max_linear_velocity

    def bound(index1: int, index: int) -> float:
        return coupled_velocity_bound(
            curvature[index1], curvature[index], abs(s[index] - s[index1]), at_max, aw_max, v_max
        )

    profile = np.full(n, v_max)

    profile[0] = 0.0
    for i in range(1, n):
        profile[i - 1] = min(profile[i - 1], bound(i - 1, i))

    profile[-1] = 0.0
    for i in range(n - 2, -1, -1):
        profile[i + 1] = min(profile[i + 1], bound(i + 1, i))

    with np.errstate(divide="ignore"):
        profile = np.fmin(profile, constraints.max_angular_velocity / np.abs(curvature))
        profile = np.fmin(profile, np.sqrt(constraints.max_centripetal_acceleration / np.abs(metrics.path_curvature)))

    if not np.all(np.isfinite(profile)):
        raise TrajectoryGenerationError("Velocity upper bounds are not finite")
    return profile


def rotational_velocity_ranges(c_prev: float, c: float, v_prev: float, ds: float, aw_max: float) -> list[Interval]:
    """
    Speeds at the current sample that keep the angular acceleration within
    ``aw_max`` when coming from the previous sample at ``v_prev``.

    The admissible set is one or two intervals depending on the sign of the
    current rotation curvature ``c`` and the discriminant of the quadratic.
    """
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        ci = np.float64(c)
        ci1 = np.float64(c_prev)
        v = np.float64(v_prev)
        ds = np.float64(ds)
        aw = np.float64(aw_max)

        def root(inner: float, outer: float):
            disc = (ci + ci1) ** 2 * v**2 + inner * 8 * ci * ds * aw
            return (1.0 / (2.0 * ci)) * ((ci1 - ci) * v + outer * np.sqrt(disc))

        if ci > 0:
            v1, v2 = root(1.0, 1.0), root(1.0, -1.0)
            if (ci + ci1) ** 2 * v**2 - 8 * ci * aw * ds < 0:
                return [Interval(v2, v1)]
            v1_star, v2_star = root(-1.0, 1.0), root(-1.0, -1.0)
            return [Interval(v2, v2_star), Interval(v1_star, v1)]

        if ci < 0:
            v1_star, v2_star = root(-1.0, 1.0), root(-1.0, -1.0)
            if (ci + ci1) ** 2 * v**2 + 8 * ci * aw * ds < 0:
                return [Interval(v1_star, v2_star)]
            v1, v2 = root(1.0, 1.0), root(1.0, -1.0)
            return [Interval(v1_star, v1), Interval(v2, v2_star)]

        if ci == 0:
            if ci1 == 0:
                return [Interval.REALS]
            v1_hat = -(2 * ds * aw) / (ci1 * v) - v
            v2_hat = (2 * ds * aw) / (ci1 * v) - v
            if ci1 > 0:
                return [Interval(v1_hat, v2_hat)]
            if ci1 < 0:
                return [Interval(v2_hat, v1_hat)]

    raise TrajectoryGenerationError(f"Unexpected rotation curvatures {c_prev} and {c}")


def combined_velocity(
    v_prev: float, ds: float, c_prev: float, c: float, a_max: float, aw_max: float
) -> tuple[float, float | None]:
    """
    Fastest admissible speed at the current sample.

    Returns:
        (velocity, gap). ``gap`` is None when the translational and rotational
        ranges intersect; otherwise the speed is the midpoint of the two
        closest boundaries and ``gap`` is their distance.
    """
    v_sq = v_prev * v_prev
    reach = 2.0 * a_max * ds
    translational = Interval(math.sqrt(v_sq - reach) if v_sq > reach else 0.0, math.sqrt(v_sq + reach))
    rotational = rotational_velocity_ranges(c_prev, c, v_prev, ds, aw_max)

    velocity = None
    for candidate in rotational:
        intersection = Interval.intersect(Interval.intersect(Interval.NON_NEGATIVE, candidate), translational)
        if intersection.is_valid:
            velocity = intersection.max if velocity is None else max(velocity, intersection.max)

    if velocity is not None:
        return velocity, None

    boundaries = [b for r in rotational for b in (r.min, r.max) if b >= FALLBACK_CANDIDATE_FLOOR]
    if not boundaries:
        raise TrajectoryGenerationError(
            f"No admissible velocity and no fallback candidate (v_prev={v_prev}, ds={ds}, curvatures {c_prev} -> {c})"
        )
    angular, linear = min(
        ((b, lin) for b in boundaries for lin in (translational.min, translational.max)),
        key=lambda pair: abs(pair[0] - pair[1]),
    )
    return max((linear + angular) / 2.0, 0.0), abs(angular - linear)


def movement_time(ds: float, v0: float, v1: float) -> float:
    """Time to cover ``ds`` going from ``v0`` to ``v1`` under constant acceleration."""
    if ds == 0:
        if v0 == v1:
            return 0.0
        raise TrajectoryGenerationError(f"Velocity change {v0} -> {v1} over zero displacement")

    acceleration = (v1 * v1 - v0 * v0) / (2.0 * ds)
    if abs(acceleration) > 0:
        return (v1 - v0) / acceleration

    total = v0 + v1
    if total == 0:
        raise TrajectoryGenerationError(f"Undefined time: both velocities are zero over displacement {ds}")
    return 2.0 * ds / total


def _finite_differences(times: np.ndarray, positions: np.ndarray, angles: np.ndarray):
    """
    Velocities by central differences (ends at rest), accelerations by
    backward differences (forward at the first sample).
    """
    n = times.size
    velocity = np.zeros((n, 2))
    omega = np.zeros(n)
    if n > 2:
        span = (times[2:] - times[:-2])[:, None]
        velocity[1:-1] = (positions[2:] - positions[:-2]) / span
        omega[1:-1] = (angles[2:] - angles[:-2]) / span[:, 0]

    dt = np.diff(times)
    acceleration = np.zeros((n, 2))
    alpha = np.zeros(n)
    acceleration[1:] = np.diff(velocity, axis=0) / dt[:, None]
    alpha[1:] = np.diff(omega) / dt
    acceleration[0] = acceleration[1]
    alpha[0] = alpha[1]
    return velocity, acceleration, omega, alpha


def generate_profile(
    poses: Sequence[CurvePose],
    constraints: TrajectoryConstraints,
    *,
    approximation_policy: str | None = None,
    on_approximation: Callable[[ApproximationEvent], None] | None = None,
) -> list[TrajectoryPoint]:
    """
    Compute a time-stamped velocity profile along sampled curve poses.

    Args:
        poses: Ordered curve poses, at least 2, no two consecutive ones at the same position
        constraints: Kinematic limits
        approximation_policy: "approximate", "warn" or "raise"; None uses the
            configured default
        on_approximation: Called with an ApproximationEvent whenever the
            combined pass has to substitute an approximate speed

    Returns:
        Trajectory points ordered by strictly increasing time, starting and
        ending at rest

    Raises:
        TrajectoryGenerationError: Malformed input or numerical infeasibility
        ConstraintApproximationError: An approximation was needed under the "raise" policy
    """
    policy = resolve_approximation_policy(approximation_policy)

    if len(poses) < 2:
        raise TrajectoryGenerationError(f"Path is too short: {len(poses)} point(s)")

    metrics = _path_metrics(poses)
    n = len(poses)
    profile = _upper_bounds(metrics, constraints)
    upper_bounds = profile.copy()

    approximations = 0

    def combined_pass(previous: int, current: int, limit: float) -> None:
        nonlocal approximations
        velocity, gap = combined_velocity(
            profile[previous],
            abs(metrics.displacement[current] - metrics.displacement[previous]),
            metrics.rotation_curvature[previous],
            metrics.rotation_curvature[current],
            limit,
            constraints.max_angular_acceleration,
        )

        if not math.isfinite(velocity):
            raise TrajectoryGenerationError(f"Non-finite velocity {velocity} at point {current}")

        if gap is not None:
            approximations += 1
            event = ApproximationEvent(current, velocity, gap)
            if on_approximation is not None:
                on_approximation(event)
            message = f"Constraint approximation at point {current}: v={velocity:.6f}, gap={gap:.3e}"
            if policy == "raise":
                raise ConstraintApproximationError(message, current)
            if policy == "warn":
                logger.warning(message)
            else:
                logger.debug(message)

        profile[current] = min(profile[current], velocity)

    profile[0] = 0.0
    for i in range(1, n):
        combined_pass(i - 1, i, constraints.max_linear_acceleration)

    profile[-1] = 0.0
    for i in range(n - 2, -1, -1):
        combined_pass(i + 1, i, constraints.max_linear_deceleration)

    times = np.zeros(n)
    for i in range(1, n):
        dt = movement_time(metrics.displacement[i] - metrics.displacement[i - 1], profile[i - 1], profile[i])
        if not (dt > 0 and math.isfinite(dt)):
            raise TrajectoryGenerationError(f"Non-increasing time at point {i} (dt={dt})")
        times[i] = times[i - 1] + dt

    velocity, acceleration, omega, alpha = _finite_differences(
        times, metrics.positions, metrics.angular_displacement
    )

    points = [
        TrajectoryPoint(
            curve_pose=poses[i],
            rotation_curvature=UnitScalar(metrics.rotation_curvature[i], Curvature),
            displacement=UnitScalar(metrics.displacement[i], Displacement),
            angular_displacement=UnitScalar(metrics.angular_displacement[i], AngularDisplacement),
            time=UnitScalar(times[i], Time),
            speed=UnitScalar(profile[i], Velocity),
            velocity=UnitVector2(velocity[i, 0], velocity[i, 1], Velocity),
            acceleration=UnitVector2(acceleration[i, 0], acceleration[i, 1], Acceleration),
            angular_velocity=UnitScalar(omega[i], AngularVelocity),
            angular_acceleration=UnitScalar(alpha[i], AngularAcceleration),
        )
        for i in range(n)
    ]

    if config.TRACE_ENABLED:
        for i, point in enumerate(points):
            logger.log(
                TRACE,
                "profile i=%d t=%.6f s=%.6f v=%.6f bound=%.6f k_path=%.6f k_rot=%.6f",
                i,
                times[i],
                metrics.displacement[i],
                profile[i],
                upper_bounds[i],
                point.curve_pose.curvature,
                metrics.rotation_curvature[i],
            )

    logger.debug(
        f"Generated profile: {n} points, length {metrics.displacement[-1]:.4f} m, "
        f"duration {times[-1]:.4f} s, {approximations} approximation(s)"
    )
    return points


def generate_trajectory(
    poses: Sequence[CurvePose],
    constraints: TrajectoryConstraints,
    *,
    approximation_policy: str | None = None,
    on_approximation: Callable[[ApproximationEvent], None] | None = None,
) -> Trajectory:
    """Generate the profile and wrap it in a time-indexed Trajectory."""
    points = generate_profile(
        poses, constraints, approximation_policy=approximation_policy, on_approximation=on_approximation
    )
    return Trajectory(points)
