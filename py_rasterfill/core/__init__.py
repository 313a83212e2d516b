"""
Core rasterization, fill and composition functionality.
"""

from .errors import (
    RasterError, InvalidDimensionsError, InvalidComponentSelectorError,
    LineTooLongError, NotMutableError, UnsupportedBoundsError, UnsupportedSurfaceError,
)
from .surface import (
    Point, Rectangle, Color, TRANSPARENT, BLACK, WHITE, Surface, MutableSurface,
    RGBASurface, to_rgba, is_mutable, require_mutable, surface_bounds, rasterize,
)
from .walkers import (
    ShapeWalker, LineWalker, RectangleWalker, line_walker,
    draw_shape, draw_line, draw_rectangle, draw_walker,
)
from .voronoi import (
    VoronoiCell, VoronoiSurface, JumpFloodEngine, UNDEFINED_CELL,
    jump_flood_fill, voronoi_fill, nearest_seed_mismatches,
)
from .composite import CompositeSurface, Layer

__all__ = ['RasterError', 'InvalidDimensionsError', 'InvalidComponentSelectorError',
           'LineTooLongError', 'NotMutableError', 'UnsupportedBoundsError',
           'UnsupportedSurfaceError',
           'Point', 'Rectangle', 'Color', 'TRANSPARENT', 'BLACK', 'WHITE',
           'Surface', 'MutableSurface', 'RGBASurface', 'to_rgba', 'is_mutable',
           'require_mutable', 'surface_bounds', 'rasterize',
           'ShapeWalker', 'LineWalker', 'RectangleWalker', 'line_walker',
           'draw_shape', 'draw_line', 'draw_rectangle', 'draw_walker',
           'VoronoiCell', 'VoronoiSurface', 'JumpFloodEngine', 'UNDEFINED_CELL',
           'jump_flood_fill', 'voronoi_fill', 'nearest_seed_mismatches',
           'CompositeSurface', 'Layer']
