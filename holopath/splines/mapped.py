"""
Quintic spline whose segments are keyed by an arbitrary increasing key.
"""

import bisect
import logging
from dataclasses import dataclass

import numpy as np

from holopath.units import map_range
from holopath.utils.errors import SegmentContinuityError

from .quintic import QuinticSplineSegment, _as_vector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappedSegment:
    key_start: float
    key_end: float
    segment: QuinticSplineSegment


class QuinticSplineMapped:
    """
    Segments laid end to end over [start_key, end_key].

    Evaluation maps the key into the owning segment's local [0, 1] parameter
    and clamps to the end segments outside the key range.
    """

    def __init__(self, dimensions: int):
        if dimensions <= 0:
            raise ValueError(f"Cannot create {dimensions}D spline")
        self.dimensions = dimensions
        self._segments: list[MappedSegment] = []
        self._starts: list[float] = []

    @property
    def segments(self) -> tuple[MappedSegment, ...]:
        return tuple(self._segments)

    @property
    def is_empty(self) -> bool:
        return not self._segments

    def __len__(self) -> int:
        return len(self._segments)

    @property
    def start_key(self) -> float:
        self._require_segments()
        return self._segments[0].key_start

    @property
    def end_key(self) -> float:
        self._require_segments()
        return self._segments[-1].key_end

    def _require_segments(self) -> None:
        if not self._segments:
            raise ValueError("Spline has no segments")

    def insert(self, key_start: float, key_end: float, segment: QuinticSplineSegment) -> None:
        if segment.size != self.dimensions:
            raise ValueError(f"Cannot add {segment.size}D segment to a {self.dimensions}D spline")
        if not key_end > key_start:
            raise ValueError(f"Segment key range [{key_start}, {key_end}] is not increasing")
        if self._segments and self._segments[-1].key_end != key_start:
            raise SegmentContinuityError(
                f"Segment starts at key {key_start} but the previous one ends at {self._segments[-1].key_end}"
            )
        self._segments.append(MappedSegment(float(key_start), float(key_end), segment))
        self._starts.append(float(key_start))

    def clear(self) -> None:
        self._segments.clear()
        self._starts.clear()

    def _locate(self, key: float) -> tuple[MappedSegment, float]:
        self._require_segments()
        if key <= self.start_key:
            return self._segments[0], 0.0
        if key >= self.end_key:
            return self._segments[-1], 1.0
        index = bisect.bisect_right(self._starts, key) - 1
        mapped = self._segments[index]
        return mapped, map_range(key, mapped.key_start, mapped.key_end, 0.0, 1.0)

    def evaluate(self, key: float) -> np.ndarray:
        mapped, t = self._locate(key)
        return mapped.segment.evaluate(t)

    def evaluate_velocity(self, key: float) -> np.ndarray:
        """Derivative with respect to the key."""
        mapped, t = self._locate(key)
        return mapped.segment.evaluate_velocity(t) / (mapped.key_end - mapped.key_start)


@dataclass
class _MappedPoint:
    key: float
    displacement: np.ndarray
    velocity: np.ndarray
    acceleration: np.ndarray


class QuinticSplineMappedBuilder:
    """Collects keyed knots and joins consecutive ones with quintic segments."""

    def __init__(self, size: int):
        self.size = size
        self._points: list[_MappedPoint] = []

    def __len__(self) -> int:
        return len(self._points)

    def add(self, key: float, displacement, velocity=None, acceleration=None) -> None:
        zeros = np.zeros(self.size)
        point = _MappedPoint(
            float(key),
            _as_vector(displacement, "displacement"),
            zeros if velocity is None else _as_vector(velocity, "velocity"),
            zeros if acceleration is None else _as_vector(acceleration, "acceleration"),
        )
        for name in ("displacement", "velocity", "acceleration"):
            if getattr(point, name).size != self.size:
                raise ValueError(f"{name} must have {self.size} dimensions")
        self._points.append(point)

    def can_build(self) -> bool:
        return len(self._points) > 1

    def build(self) -> QuinticSplineMapped:
        if not self.can_build():
            raise ValueError(f"Cannot build a mapped spline from {len(self._points)} point(s)")

        spline = QuinticSplineMapped(self.size)
        for a, b in zip(self._points[:-1], self._points[1:]):
            spline.insert(
                a.key,
                b.key,
                QuinticSplineSegment(
                    a.displacement, a.velocity, a.acceleration, b.acceleration, b.velocity, b.displacement
                ),
            )
        return spline

    def clear(self) -> None:
        self._points.clear()
