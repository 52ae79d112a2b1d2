"""
Trapezoidal timing helpers shared by the preview player and trajectory sampling.
"""

import numpy as np

from holopath.config import PREVIEW_RATE_HZ


def samples_for_duration(duration: float, sample_rate: float) -> int:
    if duration <= 0:
        return 2
    n = int(round(duration * sample_rate)) + 1
    return max(2, n)


def sample_times(start: float, end: float, sample_rate: float | None = None) -> np.ndarray:
    """
    Evenly spaced timestamps covering [start, end], both included.

    Returns: array of shape (N,), N >= 2
    """
    sr = PREVIEW_RATE_HZ if sample_rate is None else float(sample_rate)
    if sr <= 0:
        raise ValueError(f"sample_rate must be positive, got {sr}")
    n = samples_for_duration(end - start, sr)
    return np.linspace(start, end, n)


def trapezoid_timings(distance: float, v_max: float, a_max: float) -> tuple[float, float, float, float, bool]:
    """
    Compute trapezoid or triangular profile timing for a rest-to-rest move.

    Returns: (T, t_a, t_c, v_peak, triangular)
      - T: total time
      - t_a: accel time
      - t_c: constant velocity time (0 for triangular)
      - v_peak: peak velocity reached
      - triangular: True if the profile never cruises
    """
    if distance <= 0 or v_max <= 0 or a_max <= 0:
        return 0.0, 0.0, 0.0, 0.0, True

    t_a = v_max / a_max
    s_a = 0.5 * a_max * t_a**2

    if 2 * s_a < distance:
        t_c = (distance - 2 * s_a) / v_max
        return 2 * t_a + t_c, t_a, t_c, v_max, False

    v_peak = float(np.sqrt(a_max * distance))
    t_a = v_peak / a_max
    return 2 * t_a, t_a, 0.0, v_peak, True


def trapezoid_distance(t, distance: float, v_max: float, a_max: float):
    """
    Distance travelled at time ``t`` along a rest-to-rest trapezoid.

    ``t`` may be a scalar or an array; it is clamped to [0, T].
    """
    T, t_a, t_c, v_peak, _ = trapezoid_timings(distance, v_max, a_max)
    if T <= 0:
        return np.zeros_like(np.asarray(t, dtype=float)) if np.ndim(t) else 0.0

    ts = np.clip(np.asarray(t, dtype=float), 0.0, T)
    s_a = 0.5 * a_max * t_a**2
    td = ts - (t_a + t_c)

    pos = np.where(
        ts <= t_a,
        0.5 * a_max * ts**2,
        np.where(
            ts <= t_a + t_c,
            s_a + v_peak * (ts - t_a),
            s_a + v_peak * t_c + v_peak * td - 0.5 * a_max * td**2,
        ),
    )
    pos = np.minimum(pos, distance)
    return pos if np.ndim(t) else float(pos)


def plan_trapezoid_position_1d(
    start: float,
    end: float,
    v_max: float,
    a_max: float,
    sample_rate: float | None = None,
) -> np.ndarray:
    """
    Generate 1D position samples following a trapezoidal (or triangular) velocity profile.
    Returns positions of shape (N,), including start and end.

    Notes:
    - start and end can be any floats; the profile runs along the line with the correct sign.
    """
    sr = PREVIEW_RATE_HZ if sample_rate is None else float(sample_rate)
    d = float(end) - float(start)
    sign = 1.0 if d >= 0 else -1.0
    L = abs(d)

    if L == 0 or v_max <= 0 or a_max <= 0:
        return np.array([start, end], dtype=float)

    T = trapezoid_timings(L, v_max, a_max)[0]
    t = np.linspace(0.0, T, samples_for_duration(T, sr))
    pos = trapezoid_distance(t, L, v_max, a_max)

    # Clamp last sample to exact L to avoid drift
    pos[-1] = L
    return (float(start) + sign * pos).astype(float)
