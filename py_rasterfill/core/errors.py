"""
Exceptions raised by the rasterization and fill routines.

Every error derives from :class:`RasterError` and from the closest builtin
exception, so callers can catch either.
"""


class RasterError(Exception):
    """Base class for all py_rasterfill errors."""


class InvalidDimensionsError(RasterError, ValueError):
    """A width or height was not positive."""


class InvalidComponentSelectorError(RasterError, IndexError):
    """An index selected a component that does not exist."""


class LineTooLongError(RasterError, ValueError):
    """A line walk hit the safety ceiling on steps."""


class NotMutableError(RasterError, TypeError):
    """A surface that must accept writes has no ``set`` method."""


class UnsupportedBoundsError(RasterError, ValueError):
    """A surface's bounds are not supported by the operation."""


class UnsupportedSurfaceError(RasterError, TypeError):
    """An object does not provide the surface capabilities required."""
