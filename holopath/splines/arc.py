"""
Arc-length parameterization of a spline via a segment tree of linear pieces.
"""

import logging
from dataclasses import dataclass

import numpy as np

from holopath import config
from holopath.units import Displacement, UnitScalar, map_range
from holopath.utils.segment_tree import SegmentRange, SegmentTree, SegmentTreeBuilder

from .quintic import QuinticSpline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ArcPiece:
    arc0: float
    arc1: float
    t0: float
    t1: float

    def parameter(self, arc: float) -> float:
        return map_range(min(max(arc, self.arc0), self.arc1), self.arc0, self.arc1, self.t0, self.t1)


class ArcParameterizedSpline:
    """
    Maps distance along the path to the spline parameter.

    The path is cut into ``samples - 1`` uniform parameter pieces; each piece
    maps its chord length linearly back to its parameter range.
    """

    def __init__(self, spline: QuinticSpline, samples: int | None = None):
        samples = config.ARC_PARAMETERIZATION_SAMPLES if samples is None else int(samples)
        if samples < 2:
            raise ValueError(f"samples must be at least 2, got {samples}")

        self.spline = spline
        ts = np.linspace(0.0, 1.0, samples)
        points = spline.evaluate_many(ts)
        lengths = np.linalg.norm(np.diff(points, axis=0), axis=1)
        # Chords below rounding noise of the coordinates count as stationary
        min_length = 1e-12 * max(1.0, float(np.max(np.abs(points))))

        builder: SegmentTreeBuilder[_ArcPiece] = SegmentTreeBuilder()
        arc = 0.0
        piece_t0 = 0.0
        last_piece = None
        for i, length in enumerate(lengths):
            if length <= min_length:
                # Stationary stretch; fold it into the next moving piece
                continue
            t1 = float(ts[i + 1])
            if last_piece is not None:
                builder.insert(last_piece, SegmentRange(last_piece.arc0, last_piece.arc1))
            last_piece = _ArcPiece(arc, arc + float(length), piece_t0, t1)
            arc += float(length)
            piece_t0 = t1

        if last_piece is None:
            raise ValueError("Cannot arc-parameterize a spline of zero length")

        # A stationary tail maps onto the end of the last moving piece
        last_piece = _ArcPiece(last_piece.arc0, last_piece.arc1, last_piece.t0, 1.0)
        builder.insert(last_piece, SegmentRange(last_piece.arc0, last_piece.arc1))

        self._tree: SegmentTree[_ArcPiece] = builder.build()
        logger.debug(f"Arc parameterization: length {arc:.6f} over {len(self._tree)} pieces")

    @property
    def arc_length(self) -> UnitScalar[Displacement]:
        return UnitScalar(self._tree.range.end, Displacement)

    def evaluate_parameter(self, arc_length: float) -> float:
        """Spline parameter at distance ``arc_length``, clamped to the path."""
        arc = min(max(float(arc_length), self._tree.range.start), self._tree.range.end)
        return self._tree.query(arc).parameter(arc)

    def evaluate(self, arc_length: float) -> np.ndarray:
        return self.spline.evaluate(self.evaluate_parameter(arc_length))

    def evaluate_velocity(self, arc_length: float) -> np.ndarray:
        return self.spline.evaluate_velocity(self.evaluate_parameter(arc_length))
