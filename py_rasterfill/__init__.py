"""
py_rasterfill: line and rectangle rasterization, jump-flood Voronoi fill and
layered surface composition over any pixel surface.
"""

from .core import (
    Point, Rectangle, Color, RGBASurface, LineWalker, RectangleWalker,
    draw_line, draw_rectangle, voronoi_fill, jump_flood_fill,
    VoronoiSurface, CompositeSurface, RasterError,
)

__version__ = "0.1.0"

__all__ = ['Point', 'Rectangle', 'Color', 'RGBASurface', 'LineWalker', 'RectangleWalker',
           'draw_line', 'draw_rectangle', 'voronoi_fill', 'jump_flood_fill',
           'VoronoiSurface', 'CompositeSurface', 'RasterError']
