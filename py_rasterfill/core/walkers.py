"""
Pixel walking and the rasterizers built on it.

A walker produces a finite, restartable sequence of integer points. Call
``reset()``, then ``next()`` until ``done()`` returns True:

    walker = LineWalker((0, 0), (4, 2))
    walker.reset()
    while not walker.done():
        x, y = walker.next()

Walkers are also iterable, which resets them and yields every point.
"""

from typing import Any, Iterator, List, Optional, Protocol, Tuple

import structlog

from ..config import settings
from .errors import (
    InvalidComponentSelectorError,
    InvalidDimensionsError,
    LineTooLongError,
    UnsupportedSurfaceError,
)
from .surface import MutableSurface, Point, Rectangle, RGBASurface, is_mutable

logger = structlog.get_logger()


class ShapeWalker(Protocol):
    """Anything that walks the pixels of a shape."""

    def next(self) -> Point:
        ...

    def done(self) -> bool:
        ...

    def reset(self) -> None:
        ...


class LineWalker:
    """
    Walks the pixels of a segment, one per unit step on the major axis.

    The major axis is the one with the larger extent (y when the extents are
    equal). Endpoints are ordered so the major coordinate always ascends, and
    the minor coordinate at step ``t`` is ``origin + t * slope`` truncated
    toward zero. Both endpoints are produced, so a walk yields
    ``max(|dx|, |dy|) + 1`` points.
    """

    def __init__(self, a: Tuple[int, int], b: Tuple[int, int]):
        a = Point(int(a[0]), int(a[1]))
        b = Point(int(b[0]), int(b[1]))

        # Stepping along the shorter axis would leave gaps.
        self.x_major = abs(b.x - a.x) > abs(b.y - a.y)
        if self.x_major:
            if a.x > b.x:
                a, b = b, a
            self._start, self._end = a.x, b.x
            self._minor_origin = a.y
            self._minor_delta = b.y - a.y
        else:
            if a.y > b.y:
                a, b = b, a
            self._start, self._end = a.y, b.y
            self._minor_origin = a.x
            self._minor_delta = b.x - a.x

        self._major_delta = self._end - self._start
        self.start = a
        self.end = b
        self._current = self._start

    @classmethod
    def create(cls, a: Tuple[int, int], b: Tuple[int, int]) -> "LineWalker":
        return cls(a, b)

    @property
    def slope(self) -> float:
        """Minor-axis change per major-axis step."""
        if self._major_delta == 0:
            return 0.0
        return self._minor_delta / self._major_delta

    def _minor_offset(self, t: int) -> int:
        # Exact integer form of int(t * slope), so the far endpoint is hit
        # even when the slope is not representable as a float.
        if self._major_delta == 0:
            return 0
        numerator = t * self._minor_delta
        offset = abs(numerator) // self._major_delta
        return offset if numerator >= 0 else -offset

    def next(self) -> Point:
        minor = self._minor_origin + self._minor_offset(self._current - self._start)
        if self.x_major:
            point = Point(self._current, minor)
        else:
            point = Point(minor, self._current)
        self._current += 1
        return point

    def done(self) -> bool:
        return self._current > self._end

    def reset(self) -> None:
        self._current = self._start

    def __len__(self) -> int:
        return self._major_delta + 1

    def __iter__(self) -> Iterator[Point]:
        self.reset()
        while not self.done():
            yield self.next()

    def __repr__(self) -> str:
        axis = "x" if self.x_major else "y"
        return f"LineWalker({tuple(self.start)} -> {tuple(self.end)}, {axis}-major)"


def line_walker(a: Tuple[int, int], b: Tuple[int, int]) -> LineWalker:
    """Return a walker producing the points from ``a`` to ``b``."""
    return LineWalker(a, b)


class RectangleWalker:
    """
    Walks the outline of a rectangle as four edges: top, right, bottom, left.

    The rectangle is half-open, so its last pixel column and row are
    ``max_x - 1`` and ``max_y - 1``. Corner pixels are shared by adjacent
    edges and therefore produced twice. An empty rectangle is done at once.
    """

    def __init__(self, rect: Tuple[int, int, int, int]):
        self.rect = Rectangle(*rect).canon()
        self.edges: List[LineWalker] = []
        if not self.rect.empty:
            right = self.rect.max_x - 1
            bottom = self.rect.max_y - 1
            top_left = (self.rect.min_x, self.rect.min_y)
            top_right = (right, self.rect.min_y)
            bottom_right = (right, bottom)
            bottom_left = (self.rect.min_x, bottom)
            self.edges = [
                LineWalker(top_left, top_right),
                LineWalker(top_right, bottom_right),
                LineWalker(bottom_right, bottom_left),
                LineWalker(bottom_left, top_left),
            ]
        # Index into edges; len(edges) once finished.
        self.segment = 0

    def _skip_finished_edges(self) -> None:
        while self.segment < len(self.edges) and self.edges[self.segment].done():
            self.segment += 1

    def next(self) -> Point:
        self._skip_finished_edges()
        if not self.edges:
            raise InvalidComponentSelectorError("Empty rectangle has no edges to walk")
        if self.segment >= len(self.edges):
            # Caller ignored done(); keep going along the final edge.
            return self.edges[-1].next()
        return self.edges[self.segment].next()

    def done(self) -> bool:
        self._skip_finished_edges()
        return self.segment >= len(self.edges)

    def reset(self) -> None:
        for edge in self.edges:
            edge.reset()
        self.segment = 0

    def __iter__(self) -> Iterator[Point]:
        self.reset()
        while not self.done():
            yield self.next()


def draw_shape(
    walker: ShapeWalker,
    color: Any,
    surface: MutableSurface,
    max_steps: Optional[int] = None,
) -> int:
    """
    Write ``color`` at every point of ``walker`` into ``surface``.

    Pixels already written stay written if the walk is aborted.

    Args:
        walker: Walker to drive; it is reset first
        color: Color to write
        surface: Destination surface
        max_steps: Step ceiling, defaults to ``settings.max_line_steps``

    Returns:
        Number of points written

    Raises:
        UnsupportedSurfaceError: If ``surface`` has no ``set`` method
        LineTooLongError: If the step count reaches ``max_steps``
    """
    if not is_mutable(surface):
        raise UnsupportedSurfaceError(
            f"Cannot draw onto {type(surface).__name__}: it has no set()"
        )
    limit = settings.max_line_steps if max_steps is None else max_steps

    walker.reset()
    step = 0
    while not walker.done():
        step += 1
        if step >= limit:
            logger.warning("Aborting walk at step ceiling", max_steps=limit)
            raise LineTooLongError(f"Walk exceeded {limit} steps")
        x, y = walker.next()
        surface.set(x, y, color)
    return step


def draw_line(
    a: Tuple[int, int],
    b: Tuple[int, int],
    color: Any,
    surface: MutableSurface,
    max_steps: Optional[int] = None,
) -> None:
    """Draw the segment from ``a`` to ``b`` (both inclusive) in ``color``."""
    draw_shape(LineWalker(a, b), color, surface, max_steps)


def draw_rectangle(
    rect: Tuple[int, int, int, int],
    color: Any,
    surface: MutableSurface,
    max_steps: Optional[int] = None,
) -> None:
    """Draw the one-pixel outline of the half-open rectangle ``rect``."""
    draw_shape(RectangleWalker(rect), color, surface, max_steps)


def draw_walker(walker: ShapeWalker, color: Any) -> RGBASurface:
    """
    Render a walker into a new surface sized to fit the shape exactly.

    The shape's top-left extreme lands at (0, 0); untouched pixels are
    transparent.

    Raises:
        InvalidDimensionsError: If the walker produces no points
    """
    min_x = min_y = None
    max_x = max_y = None
    walker.reset()
    while not walker.done():
        x, y = walker.next()
        if min_x is None:
            min_x, max_x, min_y, max_y = x, x, y, y
            continue
        min_x = min(min_x, x)
        max_x = max(max_x, x)
        min_y = min(min_y, y)
        max_y = max(max_y, y)

    if min_x is None:
        raise InvalidDimensionsError("No points were in the shape")

    result = RGBASurface(max_x - min_x + 1, max_y - min_y + 1)
    walker.reset()
    while not walker.done():
        x, y = walker.next()
        result.set(x - min_x, y - min_y, color)
    return result
