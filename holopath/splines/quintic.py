"""
Piecewise quintic Hermite splines over a uniform [0, 1] parameter.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from scipy import integrate

from holopath import config
from holopath.geometry import CurvePose, Pose, Rotation, Translation
from holopath.units import Displacement, Percentage, UnitScalar

from .hermite import (
    SPEED_EPS_SQ,
    curvature_from_derivatives,
    hermite_quintic,
    hermite_quintic_basis,
    hermite_quintic_derivative1,
    hermite_quintic_derivative2,
    uniform_indices,
)

logger = logging.getLogger(__name__)

# Parameter step used for the chord fallback when the tangent is undefined
_CHORD_STEP = 1e-4


def _as_vector(value, name: str) -> np.ndarray:
    arr = np.atleast_1d(np.asarray(value, dtype=float))
    if arr.ndim != 1:
        raise ValueError(f"{name} must be a 1-D vector, got shape {arr.shape}")
    return arr


class QuinticSplineSegment:
    """
    One quintic Hermite piece, fixed by position, velocity and acceleration at
    both ends of its local parameter range [0, 1].
    """

    __slots__ = ("_coeffs",)

    def __init__(self, p0, v0, a0, a1, v1, p1):
        names = ("p0", "v0", "a0", "a1", "v1", "p1")
        vectors = [_as_vector(v, n) for v, n in zip((p0, v0, a0, a1, v1, p1), names)]
        size = vectors[0].size
        for vec, name in zip(vectors, names):
            if vec.size != size:
                raise ValueError(f"{name} has {vec.size} dimensions, expected {size}")
        self._coeffs = np.stack(vectors)
        self._coeffs.setflags(write=False)

    @property
    def size(self) -> int:
        return int(self._coeffs.shape[1])

    @property
    def coefficients(self) -> np.ndarray:
        """(6, size) matrix of boundary values in ``p0, v0, a0, a1, v1, p1`` order."""
        return self._coeffs

    @property
    def p0(self) -> np.ndarray:
        return self._coeffs[0]

    @property
    def v0(self) -> np.ndarray:
        return self._coeffs[1]

    @property
    def a0(self) -> np.ndarray:
        return self._coeffs[2]

    @property
    def a1(self) -> np.ndarray:
        return self._coeffs[3]

    @property
    def v1(self) -> np.ndarray:
        return self._coeffs[4]

    @property
    def p1(self) -> np.ndarray:
        return self._coeffs[5]

    def evaluate(self, t: float) -> np.ndarray:
        return hermite_quintic(*self._coeffs, t)

    def evaluate_velocity(self, t: float) -> np.ndarray:
        return hermite_quintic_derivative1(*self._coeffs, t)

    def evaluate_acceleration(self, t: float) -> np.ndarray:
        return hermite_quintic_derivative2(*self._coeffs, t)

    def evaluate_curvature(self, t: float) -> float:
        if self.size != 2:
            raise ValueError(f"Curvature is only defined for 2D segments, got {self.size}D")
        dx, dy = self.evaluate_velocity(t)
        ddx, ddy = self.evaluate_acceleration(t)
        return curvature_from_derivatives(float(dx), float(dy), float(ddx), float(ddy))

    def __repr__(self) -> str:
        return f"QuinticSplineSegment(p0={self.p0.tolist()}, p1={self.p1.tolist()})"


class QuinticSpline:
    """
    Ordered quintic segments sharing a uniform global parameter.

    Segment i of n owns [i/n, (i+1)/n]. Segments are appended in path order and
    never reordered; continuity between neighbours is the caller's business
    (see ``continuity_errors``).
    """

    def __init__(self, dimensions: int = 2):
        if dimensions <= 0:
            raise ValueError(f"Cannot create {dimensions}D spline")
        self.dimensions = dimensions
        self._segments: list[QuinticSplineSegment] = []

    @property
    def segments(self) -> tuple[QuinticSplineSegment, ...]:
        return tuple(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    @property
    def is_empty(self) -> bool:
        return not self._segments

    def add(self, segment: QuinticSplineSegment) -> None:
        if segment.size != self.dimensions:
            raise ValueError(f"Cannot add {segment.size}D segment to a {self.dimensions}D spline")
        self._segments.append(segment)

    def clear(self) -> None:
        self._segments.clear()

    def _locate(self, progress: float) -> tuple[QuinticSplineSegment, float]:
        if not self._segments:
            raise ValueError("Cannot evaluate a spline with no segments")
        index, t = uniform_indices(len(self._segments), progress)
        return self._segments[index], t

    def evaluate(self, progress: float) -> np.ndarray:
        segment, t = self._locate(progress)
        return segment.evaluate(t)

    def evaluate_velocity(self, progress: float) -> np.ndarray:
        segment, t = self._locate(progress)
        return segment.evaluate_velocity(t)

    def evaluate_acceleration(self, progress: float) -> np.ndarray:
        segment, t = self._locate(progress)
        return segment.evaluate_acceleration(t)

    def evaluate_curvature(self, progress: float) -> float:
        segment, t = self._locate(progress)
        return segment.evaluate_curvature(t)

    def evaluate_many(self, progresses, derivative: int = 0) -> np.ndarray:
        """
        Vectorized evaluation.

        Args:
            progresses: Global parameters, shape (m,)
            derivative: 0=position, 1=velocity, 2=acceleration

        Returns:
            (m, dimensions) array
        """
        if not self._segments:
            raise ValueError("Cannot evaluate a spline with no segments")
        progresses = np.atleast_1d(np.asarray(progresses, dtype=float))
        indices, local = uniform_indices(len(self._segments), progresses)
        out = np.empty((progresses.size, self.dimensions))
        for index in np.unique(indices):
            mask = indices == index
            basis = hermite_quintic_basis(local[mask], derivative)
            out[mask] = basis.T @ self._segments[index].coefficients
        return out

    def compute_arc_length(self, points: int | None = None) -> UnitScalar[Displacement]:
        """
        Piecewise-linear arc length over ``points`` uniform intervals of [0, 1].

        Not adaptive: fine for display and arc mapping, loses accuracy on
        splines with strongly varying speed.
        """
        points = config.ARC_LENGTH_SAMPLES if points is None else int(points)
        if points <= 0:
            raise ValueError(f"points must be positive, got {points}")
        positions = self.evaluate_many(np.linspace(0.0, 1.0, points + 1))
        length = float(np.sum(np.linalg.norm(np.diff(positions, axis=0), axis=1)))
        return UnitScalar(length, Displacement)

    def integrate_arc_length(self) -> UnitScalar[Displacement]:
        """Arc length by adaptive quadrature of the speed, segment by segment."""
        total = 0.0
        for segment in self._segments:
            value, _ = integrate.quad(lambda t, s=segment: float(np.linalg.norm(s.evaluate_velocity(t))), 0.0, 1.0)
            total += value
        return UnitScalar(total, Displacement)

    def project(self, point) -> UnitScalar[Percentage]:
        """
        Parameter of the point on the spline closest to ``point``.

        A coarse uniform scan picks the starting candidate; coordinate descent
        then refines it, only ever moving to a strictly better parameter.
        """
        position = _as_vector(point, "point")
        if position.size != self.dimensions:
            raise ValueError(f"Cannot project a {position.size}D point onto a {self.dimensions}D spline")
        if not self._segments:
            return UnitScalar(0.0, Percentage)

        samples = config.PROJECTION_SAMPLES
        ts = np.linspace(0.0, 1.0, samples)
        errors = np.sum((self.evaluate_many(ts) - position) ** 2, axis=1)
        best = int(np.argmin(errors))
        closest = float(ts[best])

        def project_error(t: float) -> float:
            delta = self.evaluate(min(max(t, 0.0), 1.0)) - position
            return float(np.dot(delta, delta))

        if 0.0 < closest < 1.0:
            rate = 1.0 / samples
            current_error = float(errors[best])
            for _ in range(config.PROJECTION_DESCENT_STEPS):
                error_left = project_error(closest - rate)
                error_right = project_error(closest + rate)

                if error_right < error_left:
                    step, adjusted_error = rate, error_right
                else:
                    step, adjusted_error = -rate, error_left

                if adjusted_error >= current_error:
                    rate = rate**config.PROJECTION_DESCENT_FALLOFF
                    continue

                closest = min(max(closest + step, 0.0), 1.0)
                current_error = adjusted_error

        return UnitScalar(min(max(closest, 0.0), 1.0), Percentage)

    def tangent_rotation(self, progress: float) -> Rotation:
        """
        Heading of the path at ``progress``.

        Where the velocity vanishes the acceleration direction is used, and
        failing that the chord towards a neighbouring parameter.
        """
        velocity = self.evaluate_velocity(progress)
        if float(np.dot(velocity, velocity)) > SPEED_EPS_SQ:
            return Rotation.from_direction(velocity)

        acceleration = self.evaluate_acceleration(progress)
        if float(np.dot(acceleration, acceleration)) > SPEED_EPS_SQ:
            return Rotation.from_direction(acceleration)

        if progress + _CHORD_STEP <= 1.0:
            chord = self.evaluate(progress + _CHORD_STEP) - self.evaluate(progress)
        else:
            chord = self.evaluate(progress) - self.evaluate(progress - _CHORD_STEP)
        return Rotation.from_direction(chord)

    def evaluate_translation(self, progress: float) -> Translation:
        if self.dimensions != 2:
            raise ValueError(f"Cannot evaluate a pose on a {self.dimensions}D spline")
        x, y = self.evaluate(progress)
        return Translation(float(x), float(y))

    def evaluate_pose(self, progress: float) -> Pose:
        return Pose(self.evaluate_translation(progress), self.tangent_rotation(progress))

    def evaluate_curve_pose(self, progress: float) -> CurvePose:
        return CurvePose(self.evaluate_pose(progress), self.evaluate_curvature(progress), float(progress))

    def continuity_errors(self, tolerance: float = 1e-9) -> list[dict[str, float]]:
        """
        Report boundary mismatches between consecutive segments.

        Returns:
            One dict per broken boundary with the segment index and the largest
            absolute mismatch in position, velocity and acceleration
        """
        errors = []
        for index in range(1, len(self._segments)):
            a = self._segments[index - 1]
            b = self._segments[index]
            report = {
                "index": index,
                "position": float(np.max(np.abs(a.p1 - b.p0))),
                "velocity": float(np.max(np.abs(a.v1 - b.v0))),
                "acceleration": float(np.max(np.abs(a.a1 - b.a0))),
            }
            if max(report["position"], report["velocity"], report["acceleration"]) > tolerance:
                errors.append(report)
        return errors


@dataclass
class Waypoint:
    """A user-placed knot: position with optional velocity and acceleration markers."""

    position: np.ndarray
    velocity: np.ndarray = field(default=None)  # type: ignore[assignment]
    acceleration: np.ndarray = field(default=None)  # type: ignore[assignment]

    def __post_init__(self):
        self.position = _as_vector(self.position, "position")
        zeros = np.zeros_like(self.position)
        self.velocity = zeros.copy() if self.velocity is None else _as_vector(self.velocity, "velocity")
        self.acceleration = (
            zeros.copy() if self.acceleration is None else _as_vector(self.acceleration, "acceleration")
        )
        for name in ("velocity", "acceleration"):
            if getattr(self, name).size != self.position.size:
                raise ValueError(f"Waypoint {name} does not match position dimensions {self.position.size}")


def build_spline(waypoints: Sequence[Waypoint]) -> QuinticSpline:
    """
    Build a spline with one segment per consecutive waypoint pair.

    Args:
        waypoints: At least two waypoints, consumed in order

    Returns:
        The spline
    """
    if len(waypoints) < 2:
        raise ValueError(f"At least 2 waypoints are required, got {len(waypoints)}")

    spline = QuinticSpline(waypoints[0].position.size)
    for a, b in zip(waypoints[:-1], waypoints[1:]):
        spline.add(QuinticSplineSegment(a.position, a.velocity, a.acceleration, b.acceleration, b.velocity, b.position))

    logger.debug(f"Built {len(spline)}-segment spline from {len(waypoints)} waypoints")
    return spline

