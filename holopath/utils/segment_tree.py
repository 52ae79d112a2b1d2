"""
Read-only balanced interval tree over a contiguous, ascending key range.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import SegmentContinuityError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SegmentRange:
    """Closed key range [start, end] with start < end."""

    start: float
    end: float

    def __post_init__(self):
        if not self.start < self.end:
            raise ValueError(f"Segment start {self.start} must be less than end {self.end}")

    def contains(self, key: float) -> bool:
        return self.start <= key <= self.end

    @property
    def length(self) -> float:
        return self.end - self.start


class _Node(Generic[T]):
    __slots__ = ("range", "data", "left", "right")

    def __init__(self, range_: SegmentRange, data: T | None, left: _Node[T] | None, right: _Node[T] | None):
        self.range = range_
        self.data = data
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None


class SegmentTree(Generic[T]):
    """
    Maps a key to the data of the leaf range containing it.

    Where two ranges share a boundary key, the earlier range wins.
    """

    def __init__(self, root: _Node[T], count: int):
        self._root = root
        self._count = count

    @property
    def range(self) -> SegmentRange:
        return self._root.range

    def __len__(self) -> int:
        return self._count

    def __contains__(self, key: float) -> bool:
        return self._root.range.contains(key)

    def query(self, key: float) -> T:
        node = self._root
        if not node.range.contains(key):
            raise KeyError(f"Key {key} is outside [{node.range.start}, {node.range.end}]")

        while not node.is_leaf:
            # Internal nodes always have both children and cover them exactly
            node = node.left if node.left.range.contains(key) else node.right  # type: ignore[union-attr]

        return node.data  # type: ignore[return-value]


class SegmentTreeBuilder(Generic[T]):
    def __init__(self):
        self._pending: list[tuple[SegmentRange, T]] = []

    def __len__(self) -> int:
        return len(self._pending)

    def insert(self, data: T, range_: SegmentRange) -> None:
        self._pending.append((range_, data))

    def build(self) -> SegmentTree[T]:
        """
        Validate continuity and build a balanced tree by midpoint splits.

        Raises:
            ValueError: No segments were inserted
            SegmentContinuityError: A range does not start where the previous one ends
        """
        if not self._pending:
            raise ValueError("Cannot build an empty segment tree")

        for index in range(1, len(self._pending)):
            previous = self._pending[index - 1][0]
            current = self._pending[index][0]
            if previous.end != current.start:
                raise SegmentContinuityError(
                    f"Segment {index} starts at {current.start} but segment {index - 1} ends at {previous.end}"
                )

        root = self._build(0, len(self._pending) - 1)
        logger.debug(f"Built segment tree over [{root.range.start}, {root.range.end}] with {len(self._pending)} leaves")
        return SegmentTree(root, len(self._pending))

    def _build(self, left: int, right: int) -> _Node[T]:
        if left == right:
            range_, data = self._pending[left]
            return _Node(range_, data, None, None)

        mid = left + (right - left) // 2
        return _Node(
            SegmentRange(self._pending[left][0].start, self._pending[right][0].end),
            None,
            self._build(left, mid),
            self._build(mid + 1, right),
        )
