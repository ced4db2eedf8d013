"""
Fading trail of past bob positions.

Points are kept in insertion order in a bounded buffer; once it is full the
oldest point is dropped. Every point carries an ``age`` that doubles as its
opacity. Ages decay only during the draw pass, and only for the first point
of each adjacent pair, so the newest point keeps its initial age until a
newer one is appended after it.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List, Tuple

from chaospendel.config import TRACE_CAPACITY, TRACE_DECAY, TRACE_INITIAL_AGE

Point = Tuple[float, float]


@dataclass
class TracePoint:
    x: float
    y: float
    age: float = TRACE_INITIAL_AGE

    @property
    def position(self) -> Point:
        return (self.x, self.y)


@dataclass(frozen=True)
class TraceSegment:
    """Line from ``start`` to ``end`` drawn with opacity ``alpha``."""

    start: Point
    end: Point
    alpha: float


class TraceBuffer:
    """Bounded FIFO of :class:`TracePoint` with draw-time aging."""

    def __init__(
        self,
        capacity: int = TRACE_CAPACITY,
        initial_age: float = TRACE_INITIAL_AGE,
        decay: float = TRACE_DECAY,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"trace capacity must be at least 1, got {capacity!r}")
        self.capacity = int(capacity)
        self.initial_age = float(initial_age)
        self.decay = float(decay)
        self._points: Deque[TracePoint] = deque()

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[TracePoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> TracePoint:
        return self._points[index]

    def points(self) -> List[Point]:
        return [p.position for p in self._points]

    def append(self, position: Point) -> None:
        x, y = position
        self._points.append(TracePoint(float(x), float(y), self.initial_age))
        if len(self._points) > self.capacity:
            self._points.popleft()

    def draw_segments(self) -> List[TraceSegment]:
        """Return the trail as faded segments and age the points just drawn.

        Each segment takes the opacity of its first point as it was before
        this pass; that point then loses ``decay``, never going below 0.
        """
        segments: List[TraceSegment] = []
        prev = None
        for point in self._points:
            if prev is not None:
                segments.append(TraceSegment(prev.position, point.position, prev.age))
                prev.age = max(0.0, prev.age - self.decay)
            prev = point
        return segments

    def clear(self) -> None:
        self._points.clear()
