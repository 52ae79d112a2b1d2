"""
Quintic Hermite basis.

The scalar functions are duck-typed over the parameter and the boundary
values: floats, numpy arrays (evaluated per axis) and ``Dual`` numbers all
work, which is how the hand-derived derivative forms are cross-checked.
Boundary values are always ordered ``p0, v0, a0, a1, v1, p1``.
"""

import math

import numpy as np

# Below this squared speed the tangent is undefined and curvature is reported as 0
SPEED_EPS_SQ = 1e-24


def uniform_indices(segments: int, progress):
    """
    Map a global parameter in [0, 1] onto (segment index, local parameter).

    Segment i owns [i/n, (i+1)/n]. The progress is clamped first; at exactly
    1.0 the last segment is returned with local parameter 1.

    Args:
        segments: Number of segments (must be > 0)
        progress: Scalar or numpy array of global parameters

    Returns:
        (index, t) with the same shape as ``progress``
    """
    if segments <= 0:
        raise ValueError(f"Cannot index a spline with {segments} segments")

    if isinstance(progress, np.ndarray):
        scaled = np.clip(progress, 0.0, 1.0) * segments
        index = np.clip(np.floor(scaled).astype(int), 0, segments - 1)
        return index, scaled - index

    scaled = min(max(float(progress), 0.0), 1.0) * segments
    index = min(max(int(math.floor(scaled)), 0), segments - 1)
    return index, scaled - index


def hermite_quintic(p0, v0, a0, a1, v1, p1, t):
    t2 = t * t
    t3 = t2 * t
    t4 = t3 * t
    t5 = t4 * t

    h0 = 1.0 - 10.0 * t3 + 15.0 * t4 - 6.0 * t5
    h1 = t - 6.0 * t3 + 8.0 * t4 - 3.0 * t5
    h2 = 0.5 * t2 - 1.5 * t3 + 1.5 * t4 - 0.5 * t5
    h3 = 0.5 * t3 - t4 + 0.5 * t5
    h4 = -4.0 * t3 + 7.0 * t4 - 3.0 * t5
    h5 = 10.0 * t3 - 15.0 * t4 + 6.0 * t5

    return h0 * p0 + h1 * v0 + h2 * a0 + h3 * a1 + h4 * v1 + h5 * p1


def hermite_quintic_derivative1(p0, v0, a0, a1, v1, p1, t):
    t2 = t * t
    tm1_sq = (t - 1.0) * (t - 1.0)

    h0 = -30.0 * tm1_sq * t2
    h1 = -1.0 * tm1_sq * (15.0 * t2 - 2.0 * t - 1.0)
    h2 = -0.5 * tm1_sq * t * (5.0 * t - 2.0)
    h3 = 0.5 * t2 * (5.0 * t2 - 8.0 * t + 3.0)
    h4 = t2 * (-15.0 * t2 + 28.0 * t - 12.0)
    h5 = 30.0 * tm1_sq * t2

    return h0 * p0 + h1 * v0 + h2 * a0 + h3 * a1 + h4 * v1 + h5 * p1


def hermite_quintic_derivative2(p0, v0, a0, a1, v1, p1, t):
    t2 = t * t
    t3 = t2 * t

    h0 = -60.0 * t * (2.0 * t2 - 3.0 * t + 1.0)
    h1 = -12.0 * t * (5.0 * t2 - 8.0 * t + 3.0)
    h2 = -10.0 * t3 + 18.0 * t2 - 9.0 * t + 1.0
    h3 = t * (10.0 * t2 - 12.0 * t + 3.0)
    h4 = -12.0 * t * (5.0 * t2 - 7.0 * t + 2.0)
    h5 = 60.0 * t * (2.0 * t2 - 3.0 * t + 1.0)

    return h0 * p0 + h1 * v0 + h2 * a0 + h3 * a1 + h4 * v1 + h5 * p1


_DERIVATIVES = (hermite_quintic, hermite_quintic_derivative1, hermite_quintic_derivative2)


def hermite_quintic_basis(t, derivative: int = 0) -> np.ndarray:
    """
    Basis weights for many parameters at once.

    Args:
        t: Array of local parameters, shape (m,)
        derivative: 0=position, 1=velocity, 2=acceleration

    Returns:
        (6, m) matrix; row k holds the weight of the k-th boundary value
    """
    if derivative not in (0, 1, 2):
        raise ValueError(f"Derivative order {derivative} not supported (max is 2)")
    t = np.atleast_1d(np.asarray(t, dtype=float))
    fn = _DERIVATIVES[derivative]
    eye = np.eye(6)
    return np.stack([fn(*eye[k], t) for k in range(6)])


def curvature_from_derivatives(dx: float, dy: float, ddx: float, ddy: float) -> float:
    """Signed curvature (x'y'' - x''y') / |v|³, 0 where the speed vanishes."""
    speed_sq = dx * dx + dy * dy
    if speed_sq <= SPEED_EPS_SQ:
        return 0.0
    return (dx * ddy - ddx * dy) / (speed_sq * math.sqrt(speed_sq))


def hermite_quintic_curvature(p0, v0, a0, a1, v1, p1, t: float) -> float:
    """
    Signed curvature of a 2D quintic Hermite segment.

    All boundary values are (x, y) pairs.
    """
    dx = hermite_quintic_derivative1(p0[0], v0[0], a0[0], a1[0], v1[0], p1[0], t)
    dy = hermite_quintic_derivative1(p0[1], v0[1], a0[1], a1[1], v1[1], p1[1], t)
    ddx = hermite_quintic_derivative2(p0[0], v0[0], a0[0], a1[0], v1[0], p1[0], t)
    ddy = hermite_quintic_derivative2(p0[1], v0[1], a0[1], a1[1], v1[1], p1[1], t)
    return curvature_from_derivatives(float(dx), float(dy), float(ddx), float(ddy))
