"""
Surface data model.

A *surface* is anything that reports rectangular bounds and answers a color
for an integer coordinate. A *mutable surface* additionally accepts writes.
Both are structural protocols, so any object with the right methods
qualifies; :class:`RGBASurface` is the numpy-backed implementation used when
the package needs storage of its own.

Colors are 16 bits per channel (0..65535) in RGBA order.
"""

from collections.abc import Sequence
from typing import Any, NamedTuple, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

from .errors import InvalidDimensionsError, NotMutableError, UnsupportedSurfaceError

MAX_CHANNEL = 0xFFFF


class Point(NamedTuple):
    """Integer pixel coordinate."""
    x: int
    y: int


class Rectangle(NamedTuple):
    """Half-open rectangle [min_x, max_x) x [min_y, max_y)."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    def canon(self) -> "Rectangle":
        """Return the rectangle with min and max swapped where needed."""
        min_x, max_x = sorted((self.min_x, self.max_x))
        min_y, max_y = sorted((self.min_y, self.max_y))
        return Rectangle(min_x, min_y, max_x, max_y)

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def top_left(self) -> Point:
        return Point(self.min_x, self.min_y)

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y

    def translate(self, dx: int, dy: int) -> "Rectangle":
        return Rectangle(self.min_x + dx, self.min_y + dy, self.max_x + dx, self.max_y + dy)

    def union(self, other: "Rectangle") -> "Rectangle":
        """Smallest rectangle containing both rectangles."""
        return Rectangle(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )


class Color(NamedTuple):
    """RGBA color with 16-bit channels."""
    r: int
    g: int
    b: int
    a: int = MAX_CHANNEL

    def rgba(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    @classmethod
    def from_rgba8(cls, r: int, g: int, b: int, a: int = 0xFF) -> "Color":
        """Build a color from 8-bit channels (0xAB becomes 0xABAB)."""
        return cls(r * 0x101, g * 0x101, b * 0x101, a * 0x101)

    def to_rgba8(self) -> Tuple[int, int, int, int]:
        return (self.r >> 8, self.g >> 8, self.b >> 8, self.a >> 8)


TRANSPARENT = Color(0, 0, 0, 0)
BLACK = Color(0, 0, 0, MAX_CHANNEL)
WHITE = Color(MAX_CHANNEL, MAX_CHANNEL, MAX_CHANNEL, MAX_CHANNEL)


def to_rgba(color: Any) -> Tuple[int, int, int, int]:
    """
    Convert a color to four 16-bit channel values.

    Accepts anything with an ``rgba()`` method or any 4-item sequence.

    Raises:
        TypeError: If the value cannot be read as a color
    """
    if hasattr(color, "rgba"):
        channels = color.rgba()
    elif isinstance(color, (Sequence, np.ndarray)) and len(color) == 4:
        channels = color
    else:
        raise TypeError(f"Cannot convert {color!r} to RGBA")
    r, g, b, a = (int(c) for c in channels)
    return (r, g, b, a)


@runtime_checkable
class Surface(Protocol):
    """Readable pixel surface."""

    def bounds(self) -> Rectangle:
        ...

    def at(self, x: int, y: int) -> Any:
        ...


@runtime_checkable
class MutableSurface(Surface, Protocol):
    """Pixel surface that also accepts writes."""

    def set(self, x: int, y: int, color: Any) -> None:
        ...


def is_surface(obj: Any) -> bool:
    return isinstance(obj, Surface)


def is_mutable(obj: Any) -> bool:
    return isinstance(obj, MutableSurface)


def require_surface(obj: Any) -> Surface:
    """Return ``obj`` if it is readable as a surface, else raise."""
    if not is_surface(obj):
        raise UnsupportedSurfaceError(
            f"{type(obj).__name__} does not provide bounds() and at()"
        )
    return obj


def require_mutable(obj: Any) -> MutableSurface:
    """Return ``obj`` if it accepts writes, else raise NotMutableError."""
    if not is_mutable(obj):
        raise NotMutableError(f"{type(obj).__name__} is not drawable")
    return obj


def surface_bounds(surface: Surface, canon: bool = True) -> Rectangle:
    """
    Bounds of ``surface`` as a :class:`Rectangle`.

    ``bounds()`` may return any 4-item sequence ``(min_x, min_y, max_x,
    max_y)``.

    Raises:
        UnsupportedSurfaceError: If the bounds are not four integers
    """
    try:
        bounds = Rectangle(*(int(v) for v in surface.bounds()))
    except (TypeError, ValueError) as e:
        raise UnsupportedSurfaceError(
            f"{type(surface).__name__}.bounds() did not return a rectangle: {e}"
        ) from e
    return bounds.canon() if canon else bounds


class RGBASurface:
    """
    Mutable surface backed by a ``(height, width, 4)`` uint16 array.

    The surface covers ``[origin.x, origin.x + width) x [origin.y, origin.y +
    height)``. Reads outside that area return ``fallback``; writes outside it
    are ignored.
    """

    def __init__(
        self,
        width: int,
        height: int,
        origin: Tuple[int, int] = (0, 0),
        fallback: Color = TRANSPARENT,
    ):
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(
                f"Surface dimensions must be positive, got {width}x{height}"
            )
        self.width = width
        self.height = height
        self.origin = Point(*origin)
        self.fallback = Color(*to_rgba(fallback))
        self.pixels = np.zeros((height, width, 4), dtype=np.uint16)

    @classmethod
    def from_array(cls, array: np.ndarray, origin: Tuple[int, int] = (0, 0)) -> "RGBASurface":
        """
        Wrap a copy of an RGBA array.

        uint8 arrays are widened to 16 bits; any other dtype is taken as
        16-bit values already.

        Args:
            array: Array shaped ``(height, width, 4)``
            origin: Coordinate of the array's top-left pixel

        Returns:
            New surface holding a copy of the data
        """
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] != 4:
            raise InvalidDimensionsError(
                f"Expected an array shaped (height, width, 4), got {array.shape}"
            )
        surface = cls(array.shape[1], array.shape[0], origin)
        if array.dtype == np.uint8:
            surface.pixels[:] = array.astype(np.uint16) * 0x101
        else:
            surface.pixels[:] = np.clip(array, 0, MAX_CHANNEL)
        return surface

    def bounds(self) -> Rectangle:
        return Rectangle(
            self.origin.x,
            self.origin.y,
            self.origin.x + self.width,
            self.origin.y + self.height,
        )

    def _local(self, x: int, y: int) -> Optional[Tuple[int, int]]:
        lx = x - self.origin.x
        ly = y - self.origin.y
        if 0 <= lx < self.width and 0 <= ly < self.height:
            return lx, ly
        return None

    def at(self, x: int, y: int) -> Color:
        local = self._local(x, y)
        if local is None:
            return self.fallback
        lx, ly = local
        return Color(*(int(c) for c in self.pixels[ly, lx]))

    def set(self, x: int, y: int, color: Any) -> None:
        local = self._local(x, y)
        if local is None:
            return
        lx, ly = local
        self.pixels[ly, lx] = to_rgba(color)

    def fill(self, color: Any) -> None:
        self.pixels[:, :] = to_rgba(color)

    def to_array(self) -> np.ndarray:
        return self.pixels.copy()

    def __repr__(self) -> str:
        return f"RGBASurface({self.width}x{self.height} at {tuple(self.origin)})"


def rasterize(surface: Surface) -> RGBASurface:
    """
    Copy any surface into a new RGBASurface whose top-left is (0, 0).

    Useful for flattening lazy views such as a composite before repeated
    reads.
    """
    surface = require_surface(surface)
    bounds = surface_bounds(surface)
    result = RGBASurface(bounds.width, bounds.height)
    for y in range(bounds.height):
        for x in range(bounds.width):
            result.set(x, y, surface.at(bounds.min_x + x, bounds.min_y + y))
    return result
