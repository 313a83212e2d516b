"""
Layered composition of surfaces.

A :class:`CompositeSurface` stacks surfaces as layers, each placed at a
top-left point, and answers reads as if they were a single surface. Layer 0
is the bottom. Reads scan from the top layer down and return the first pixel
that is not fully transparent; partial alpha is not blended, so any visible
pixel hides everything beneath it.

The composite keeps references to the layer surfaces, so later changes to a
layer show through. For many layers or repeated reads, flatten it first with
:func:`py_rasterfill.core.surface.rasterize`.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import structlog

from ..config import settings
from .errors import InvalidComponentSelectorError
from .surface import (
    Point,
    Rectangle,
    Surface,
    TRANSPARENT,
    require_surface,
    surface_bounds,
    to_rgba,
)

logger = structlog.get_logger()


@dataclass
class Layer:
    """One surface placed within a composite."""
    source: Surface
    top_left: Point
    # Bounds of the source itself, used to map back into its coordinates.
    source_bounds: Rectangle
    # Area the layer covers, in composite coordinates.
    bounds: Rectangle


class CompositeSurface:
    """
    Read-only view of several surfaces stacked as layers.

    The composite's extent grows to the union of its layers' rectangles. Its
    public coordinates start at (0, 0) in the extent's top-left corner, so
    ``bounds()`` is always ``(0, 0)-(width, height)``. The extent starts as
    1x1 at the origin and only grows, so it always covers (0, 0).
    """

    def __init__(self, opaque_threshold: Optional[int] = None):
        """
        Args:
            opaque_threshold: 16-bit alpha at or above which a pixel counts
                as fully opaque, defaults to ``settings.opaque_alpha_threshold``
        """
        self.layers: List[Layer] = []
        self.opaque_threshold = (
            settings.opaque_alpha_threshold if opaque_threshold is None else opaque_threshold
        )
        self._extent = Rectangle(0, 0, 1, 1)

    def add_layer(self, source: Surface, top_left: Tuple[int, int] = (0, 0)) -> Layer:
        """
        Put ``source`` on top of the stack with its top-left corner at
        ``top_left`` (in the same coordinates as earlier placements).

        Raises:
            UnsupportedSurfaceError: If ``source`` lacks ``bounds()``/``at()``
        """
        source = require_surface(source)
        top_left = Point(int(top_left[0]), int(top_left[1]))
        source_bounds = surface_bounds(source)
        bounds = Rectangle(0, 0, source_bounds.width, source_bounds.height).translate(
            top_left.x, top_left.y
        )

        # The 1x1 starting extent stays part of the union.
        if not bounds.empty:
            self._extent = self._extent.union(bounds)

        layer = Layer(source, top_left, source_bounds, bounds)
        self.layers.append(layer)
        logger.debug(
            "Added composite layer",
            index=len(self.layers) - 1,
            bounds=tuple(bounds),
            extent=tuple(self._extent),
        )
        return layer

    def layer(self, index: int) -> Layer:
        if not 0 <= index < len(self.layers):
            raise InvalidComponentSelectorError(
                f"Layer {index} out of range for {len(self.layers)} layers"
            )
        return self.layers[index]

    def __len__(self) -> int:
        return len(self.layers)

    @property
    def extent(self) -> Rectangle:
        """Union of the layer rectangles in placement coordinates."""
        return self._extent

    def bounds(self) -> Rectangle:
        return Rectangle(0, 0, self._extent.width, self._extent.height)

    def at(self, x: int, y: int) -> Any:
        px = self._extent.min_x + x
        py = self._extent.min_y + y
        if not self._extent.contains(px, py):
            return TRANSPARENT

        for layer in reversed(self.layers):
            if not layer.bounds.contains(px, py):
                continue
            color = layer.source.at(
                px - layer.top_left.x + layer.source_bounds.min_x,
                py - layer.top_left.y + layer.source_bounds.min_y,
            )
            alpha = to_rgba(color)[3]
            if alpha >= self.opaque_threshold:
                return color
            # Partial alpha is not blended: any visible pixel counts as opaque.
            if alpha != 0:
                return color

        return TRANSPARENT
