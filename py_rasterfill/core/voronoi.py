"""
Voronoi fill using the Jump Flooding Algorithm.

Seed pixels keep their color; every other pixel takes the color of the
nearest seed it can discover. Jump flooding finds that seed in
``O(log(max(W, H)))`` passes over the grid instead of comparing every pixel
against every seed:

1. ``step = max(W, H) // 2``
2. Each pixel looks at the eight pixels ``step`` away (horizontally,
   vertically and diagonally) and adopts the seed of any neighbor whose seed
   is strictly closer than its own. An undefined pixel adopts the first
   defined neighbor it sees.
3. Halve ``step`` and repeat until it reaches zero.

The result is approximate. Some pixels can end up with a seed that is not
the true nearest one, and in extreme layouts a pixel may never see a seed at
all and stays undefined (rendered transparent). An optional extra step-1
pass reduces these errors but does not remove them.

See: https://en.wikipedia.org/wiki/Jump_flooding_algorithm
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import cKDTree

from ..config import settings
from .errors import (
    InvalidComponentSelectorError,
    InvalidDimensionsError,
    UnsupportedBoundsError,
)
from .surface import (
    MutableSurface,
    Point,
    Rectangle,
    RGBASurface,
    Surface,
    TRANSPARENT,
    require_mutable,
    surface_bounds,
    to_rgba,
)

logger = structlog.get_logger()

# Neighbor order matters: ties go to the neighbor examined first.
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (i, j) for j in (-1, 0, 1) for i in (-1, 0, 1) if (i, j) != (0, 0)
)

NO_COLOR = -1


@dataclass(frozen=True)
class VoronoiCell:
    """
    Snapshot of one pixel's fill state.

    ``color`` and ``seed_location`` are only meaningful when ``is_defined``.
    A cell also works as a color: undefined cells read as transparent.
    """
    is_seed: bool
    is_defined: bool
    color: Any = None
    seed_location: Optional[Point] = None

    def rgba(self) -> Tuple[int, int, int, int]:
        if not self.is_defined:
            return TRANSPARENT.rgba()
        return to_rgba(self.color)

    def distance_squared(self, x: int, y: int) -> Optional[int]:
        """Squared distance from (x, y) to this cell's seed, None if undefined."""
        if not self.is_defined:
            return None
        dx = x - self.seed_location.x
        dy = y - self.seed_location.y
        return dx * dx + dy * dy


# Returned for every out-of-bounds query.
UNDEFINED_CELL = VoronoiCell(is_seed=False, is_defined=False)


class VoronoiSurface:
    """
    Fill state for a ``width`` x ``height`` grid.

    State is held in parallel numpy arrays indexed ``[y, x]``:

    - ``is_seed``: pixel is one of the original seeds and never changes
    - ``is_defined``: pixel has been assigned a seed
    - ``seed_x`` / ``seed_y``: location of the assigned seed
    - ``color_index``: index into ``colors`` of the assigned seed's color

    The surface is also readable as a :class:`Surface` whose colors are
    :class:`VoronoiCell` values.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(
                f"Voronoi surface dimensions must be positive, got {width}x{height}"
            )
        self.width = width
        self.height = height

        self.is_seed = np.zeros((height, width), dtype=bool)
        self.is_defined = np.zeros((height, width), dtype=bool)
        self.seed_x = np.zeros((height, width), dtype=np.int64)
        self.seed_y = np.zeros((height, width), dtype=np.int64)
        self.color_index = np.full((height, width), NO_COLOR, dtype=np.int64)
        self.colors: List[Any] = []

    @classmethod
    def from_surface(
        cls, surface: Surface, is_seed: Callable[[int, int], bool]
    ) -> "VoronoiSurface":
        """
        Build the fill state for ``surface``, seeding every pixel where
        ``is_seed(x, y)`` is true with the surface's color there.

        Coordinates passed to ``is_seed`` and stored as seed locations are
        relative to the surface's top-left corner.
        """
        bounds = surface_bounds(surface)
        voronoi = cls(bounds.width, bounds.height)
        for y in range(bounds.height):
            for x in range(bounds.width):
                if is_seed(x, y):
                    voronoi.add_seed(x, y, surface.at(bounds.min_x + x, bounds.min_y + y))
        return voronoi

    def add_seed(self, x: int, y: int, color: Any) -> None:
        """Mark (x, y) as a seed with the given color."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise InvalidComponentSelectorError(
                f"Seed ({x}, {y}) is outside the {self.width}x{self.height} grid"
            )
        self.colors.append(color)
        self.is_seed[y, x] = True
        self.is_defined[y, x] = True
        self.seed_x[y, x] = x
        self.seed_y[y, x] = y
        self.color_index[y, x] = len(self.colors) - 1

    @property
    def seed_count(self) -> int:
        return int(np.count_nonzero(self.is_seed))

    @property
    def defined_count(self) -> int:
        return int(np.count_nonzero(self.is_defined))

    def bounds(self) -> Rectangle:
        return Rectangle(0, 0, self.width, self.height)

    def at(self, x: int, y: int) -> VoronoiCell:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return UNDEFINED_CELL
        if not self.is_defined[y, x]:
            return VoronoiCell(is_seed=False, is_defined=False)
        return VoronoiCell(
            is_seed=bool(self.is_seed[y, x]),
            is_defined=True,
            color=self.colors[self.color_index[y, x]],
            seed_location=Point(int(self.seed_x[y, x]), int(self.seed_y[y, x])),
        )

    def color_at(self, x: int, y: int) -> Any:
        """Assigned color at (x, y), transparent if undefined or outside."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            return TRANSPARENT
        if not self.is_defined[y, x]:
            return TRANSPARENT
        return self.colors[self.color_index[y, x]]

    def copy_to(self, surface: MutableSurface) -> None:
        """Write every pixel's color into ``surface`` at the same coordinates."""
        for y in range(self.height):
            for x in range(self.width):
                surface.set(x, y, self.color_at(x, y))

    def to_surface(self) -> RGBASurface:
        result = RGBASurface(self.width, self.height)
        self.copy_to(result)
        return result


class JumpFloodEngine:
    """
    Runs jump flooding over a :class:`VoronoiSurface` in place.

    By default each pass updates pixels in raster order and later pixels see
    the updates of earlier ones in the same pass. With ``double_buffer`` a
    pass reads only the values committed by the previous pass; that variant
    is vectorized with numpy and is the model for running passes in
    parallel.
    """

    def __init__(
        self,
        surface: VoronoiSurface,
        final_pass: Optional[bool] = None,
        double_buffer: Optional[bool] = None,
    ):
        """
        Args:
            surface: Fill state to update
            final_pass: Run one more pass with step 1 after the halving
                passes, defaults to ``settings.jump_flood_final_pass``
            double_buffer: Use the double-buffered pass, defaults to
                ``settings.jump_flood_double_buffer``
        """
        self.surface = surface
        self.final_pass = settings.jump_flood_final_pass if final_pass is None else final_pass
        self.double_buffer = (
            settings.jump_flood_double_buffer if double_buffer is None else double_buffer
        )

    def step_sizes(self) -> List[int]:
        """Step size of every pass this engine will run, in order."""
        steps = []
        step = max(self.surface.width, self.surface.height) >> 1
        while step > 0:
            steps.append(step)
            step >>= 1
        if self.final_pass:
            steps.append(1)
        return steps

    def run(self) -> int:
        """
        Run every pass.

        Returns:
            Number of passes run (0 when there are no seeds)
        """
        surface = self.surface
        logger.info(
            "Starting jump flood",
            width=surface.width,
            height=surface.height,
            seeds=surface.seed_count,
            double_buffer=self.double_buffer,
        )

        if surface.seed_count == 0:
            logger.warning("No seed pixels, leaving every pixel undefined")
            return 0

        steps = self.step_sizes()
        for step in steps:
            if self.double_buffer:
                self._buffered_pass(step)
            else:
                self._sequential_pass(step)
            logger.debug("Jump flood pass complete", step=step, defined=surface.defined_count)

        undefined = surface.width * surface.height - surface.defined_count
        if undefined:
            logger.warning("Pixels left undefined after jump flood", undefined=undefined)
        logger.info("Jump flood complete", passes=len(steps))
        return len(steps)

    def _sequential_pass(self, step: int) -> None:
        surface = self.surface
        w, h = surface.width, surface.height

        # Plain lists are much faster than numpy scalars in this loop.
        is_seed = surface.is_seed.ravel().tolist()
        defined = surface.is_defined.ravel().tolist()
        seed_x = surface.seed_x.ravel().tolist()
        seed_y = surface.seed_y.ravel().tolist()
        color_index = surface.color_index.ravel().tolist()

        for y in range(h):
            for x in range(w):
                p = y * w + x
                if is_seed[p]:
                    continue

                is_defined = defined[p]
                best = 0
                if is_defined:
                    dx = x - seed_x[p]
                    dy = y - seed_y[p]
                    best = dx * dx + dy * dy

                for i, j in NEIGHBOR_OFFSETS:
                    nx = x + i * step
                    ny = y + j * step
                    if nx < 0 or nx >= w or ny < 0 or ny >= h:
                        continue
                    q = ny * w + nx
                    if not defined[q]:
                        continue
                    dx = x - seed_x[q]
                    dy = y - seed_y[q]
                    distance = dx * dx + dy * dy
                    if is_defined and distance >= best:
                        continue
                    is_defined = True
                    best = distance
                    seed_x[p] = seed_x[q]
                    seed_y[p] = seed_y[q]
                    color_index[p] = color_index[q]

                defined[p] = is_defined

        shape = (h, w)
        surface.is_defined[:] = np.array(defined, dtype=bool).reshape(shape)
        surface.seed_x[:] = np.array(seed_x, dtype=np.int64).reshape(shape)
        surface.seed_y[:] = np.array(seed_y, dtype=np.int64).reshape(shape)
        surface.color_index[:] = np.array(color_index, dtype=np.int64).reshape(shape)

    def _buffered_pass(self, step: int) -> None:
        surface = self.surface
        ys, xs = np.mgrid[0:surface.height, 0:surface.width]

        # Snapshot of the previous pass; neighbors are read only from here.
        prev_defined = surface.is_defined.copy()
        prev_seed_x = surface.seed_x.copy()
        prev_seed_y = surface.seed_y.copy()
        prev_color = surface.color_index.copy()

        unreachable = np.iinfo(np.int64).max
        best = np.where(
            prev_defined,
            (xs - prev_seed_x) ** 2 + (ys - prev_seed_y) ** 2,
            unreachable,
        )
        defined = prev_defined.copy()
        seed_x = prev_seed_x.copy()
        seed_y = prev_seed_y.copy()
        color_index = prev_color.copy()
        updatable = ~surface.is_seed

        for i, j in NEIGHBOR_OFFSETS:
            dx, dy = i * step, j * step
            n_defined = _shifted(prev_defined, dx, dy, False)
            n_seed_x = _shifted(prev_seed_x, dx, dy, 0)
            n_seed_y = _shifted(prev_seed_y, dx, dy, 0)
            n_color = _shifted(prev_color, dx, dy, NO_COLOR)

            distance = (xs - n_seed_x) ** 2 + (ys - n_seed_y) ** 2
            closer = updatable & n_defined & (distance < best)

            best = np.where(closer, distance, best)
            defined |= closer
            seed_x = np.where(closer, n_seed_x, seed_x)
            seed_y = np.where(closer, n_seed_y, seed_y)
            color_index = np.where(closer, n_color, color_index)

        surface.is_defined[:] = defined
        surface.seed_x[:] = seed_x
        surface.seed_y[:] = seed_y
        surface.color_index[:] = color_index


def _shifted(array: np.ndarray, dx: int, dy: int, fill: Any) -> np.ndarray:
    """Return ``out`` with ``out[y, x] = array[y + dy, x + dx]``, ``fill`` outside."""
    h, w = array.shape
    out = np.full_like(array, fill)
    if abs(dx) >= w or abs(dy) >= h:
        return out
    out[max(0, -dy):h - max(0, dy), max(0, -dx):w - max(0, dx)] = array[
        max(0, dy):h - max(0, -dy), max(0, dx):w - max(0, -dx)
    ]
    return out


def jump_flood_fill(
    surface: VoronoiSurface,
    final_pass: Optional[bool] = None,
    double_buffer: Optional[bool] = None,
) -> int:
    """Run jump flooding over ``surface`` in place; returns the pass count."""
    return JumpFloodEngine(surface, final_pass, double_buffer).run()


def voronoi_fill(
    surface: MutableSurface,
    is_seed: Callable[[int, int], bool],
    final_pass: Optional[bool] = None,
    double_buffer: Optional[bool] = None,
) -> None:
    """
    Replace every non-seed pixel of ``surface`` with its nearest seed's color.

    Seeds are the pixels where ``is_seed(x, y)`` returns True; their current
    colors are kept. Pixels the fill could not reach are written transparent.
    The surface is modified in place.

    Args:
        surface: Surface to fill; must accept writes and have bounds starting
            at (0, 0) with positive width and height
        is_seed: Predicate selecting the seed pixels
        final_pass: See :class:`JumpFloodEngine`
        double_buffer: See :class:`JumpFloodEngine`

    Raises:
        NotMutableError: If ``surface`` has no ``set`` method
        UnsupportedBoundsError: If the bounds are not ``(0, 0)-(w, h)``
            with positive ``w`` and ``h``
    """
    surface = require_mutable(surface)
    bounds = surface_bounds(surface, canon=False)
    if not (bounds.min_x == 0 and bounds.min_y == 0 and bounds.max_x > 0 and bounds.max_y > 0):
        raise UnsupportedBoundsError(
            f"Only surfaces with bounds from (0, 0) to positive coordinates are "
            f"supported, got {tuple(bounds)}"
        )

    voronoi = VoronoiSurface.from_surface(surface, is_seed)
    jump_flood_fill(voronoi, final_pass, double_buffer)
    voronoi.copy_to(surface)


def nearest_seed_mismatches(surface: VoronoiSurface) -> int:
    """
    Count defined, non-seed pixels whose assigned seed is strictly farther
    away than the true nearest seed.

    Uses a KD-tree over the seed locations for the exact answer.
    """
    seed_ys, seed_xs = np.nonzero(surface.is_seed)
    if len(seed_xs) == 0:
        return 0

    ys, xs = np.nonzero(surface.is_defined & ~surface.is_seed)
    if len(xs) == 0:
        return 0

    tree = cKDTree(np.column_stack([seed_xs, seed_ys]))
    exact, _ = tree.query(np.column_stack([xs, ys]))
    exact_squared = np.rint(exact ** 2).astype(np.int64)

    assigned_squared = (xs - surface.seed_x[ys, xs]) ** 2 + (ys - surface.seed_y[ys, xs]) ** 2
    return int(np.count_nonzero(assigned_squared > exact_squared))
