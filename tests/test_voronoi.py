"""Tests for the jump-flood Voronoi fill."""

import dataclasses

import pytest
import numpy as np
from structlog.testing import capture_logs

from py_rasterfill.core.errors import (
    InvalidComponentSelectorError,
    InvalidDimensionsError,
    NotMutableError,
    UnsupportedBoundsError,
)
from py_rasterfill.core.surface import Color, Rectangle, RGBASurface, TRANSPARENT
from py_rasterfill.core.voronoi import (
    NEIGHBOR_OFFSETS,
    UNDEFINED_CELL,
    JumpFloodEngine,
    VoronoiSurface,
    jump_flood_fill,
    nearest_seed_mismatches,
    voronoi_fill,
)

RED = Color(0xFFFF, 0, 0)
BLUE = Color(0, 0, 0xFFFF)
GREEN = Color(0, 0xFFFF, 0)


def brute_force_nearest(seeds, x, y):
    """Smallest squared distance from (x, y) to any seed."""
    return min((x - sx) ** 2 + (y - sy) ** 2 for sx, sy in seeds)


@pytest.fixture(params=[False, True], ids=["sequential", "double_buffer"])
def double_buffer(request):
    return request.param


class TestVoronoiSurface:
    """Test the fill-state grid."""

    def test_invalid_dimensions(self):
        with pytest.raises(InvalidDimensionsError):
            VoronoiSurface(0, 4)
        with pytest.raises(InvalidDimensionsError):
            VoronoiSurface(4, -2)

    def test_starts_undefined(self):
        surface = VoronoiSurface(3, 2)

        assert surface.bounds() == Rectangle(0, 0, 3, 2)
        assert surface.seed_count == 0
        assert surface.defined_count == 0
        assert not surface.at(1, 1).is_defined
        assert surface.color_at(1, 1) == TRANSPARENT

    def test_add_seed(self):
        surface = VoronoiSurface(3, 3)
        surface.add_seed(1, 2, RED)

        cell = surface.at(1, 2)
        assert cell.is_seed
        assert cell.is_defined
        assert cell.color == RED
        assert cell.seed_location == (1, 2)
        assert surface.seed_count == 1

    def test_add_seed_out_of_range(self):
        surface = VoronoiSurface(2, 2)

        with pytest.raises(InvalidComponentSelectorError):
            surface.add_seed(2, 0, RED)

    def test_out_of_bounds_sentinel(self):
        """Out-of-bounds reads share one immutable undefined cell."""
        surface = VoronoiSurface(2, 2)
        surface.add_seed(0, 0, RED)

        assert surface.at(-1, 0) is UNDEFINED_CELL
        assert surface.at(5, 5) is UNDEFINED_CELL
        assert not UNDEFINED_CELL.is_defined
        with pytest.raises(dataclasses.FrozenInstanceError):
            UNDEFINED_CELL.is_defined = True

    def test_cell_as_color(self):
        surface = VoronoiSurface(2, 1)
        surface.add_seed(0, 0, RED)

        assert surface.at(0, 0).rgba() == RED.rgba()
        assert surface.at(1, 0).rgba() == TRANSPARENT.rgba()

    def test_cell_distance(self):
        surface = VoronoiSurface(5, 5)
        surface.add_seed(1, 1, RED)

        assert surface.at(1, 1).distance_squared(4, 5) == 25
        assert UNDEFINED_CELL.distance_squared(0, 0) is None

    def test_from_surface(self):
        source = RGBASurface(4, 3)
        source.set(3, 2, BLUE)

        surface = VoronoiSurface.from_surface(source, lambda x, y: (x, y) == (3, 2))

        assert (surface.width, surface.height) == (4, 3)
        assert surface.seed_count == 1
        assert surface.at(3, 2).color == BLUE


class TestJumpFloodEngine:
    """Test the flooding passes."""

    def test_neighbor_order(self):
        """Rows above first, left to right, centre skipped."""
        assert NEIGHBOR_OFFSETS == (
            (-1, -1), (0, -1), (1, -1),
            (-1, 0), (1, 0),
            (-1, 1), (0, 1), (1, 1),
        )

    def test_step_sizes(self):
        assert JumpFloodEngine(VoronoiSurface(4, 4), final_pass=False).step_sizes() == [2, 1]
        assert JumpFloodEngine(VoronoiSurface(10, 3), final_pass=False).step_sizes() == [5, 2, 1]
        assert JumpFloodEngine(VoronoiSurface(1, 1), final_pass=False).step_sizes() == []
        assert JumpFloodEngine(VoronoiSurface(4, 4), final_pass=True).step_sizes() == [2, 1, 1]

    def test_single_seed_fills_grid(self, double_buffer):
        surface = VoronoiSurface(4, 4)
        surface.add_seed(0, 0, RED)

        passes = jump_flood_fill(surface, final_pass=False, double_buffer=double_buffer)

        assert passes == 2
        for y in range(4):
            for x in range(4):
                cell = surface.at(x, y)
                assert cell.is_defined
                assert cell.seed_location == (0, 0)
                assert cell.color == RED
                assert cell.is_seed == ((x, y) == (0, 0))

    def test_two_corner_seeds(self, double_buffer):
        """Assignments agree with the true nearest seed up to a small error."""
        n = 16
        seeds = [(0, 0), (n - 1, n - 1)]
        surface = VoronoiSurface(n, n)
        surface.add_seed(*seeds[0], RED)
        surface.add_seed(*seeds[1], BLUE)

        jump_flood_fill(surface, final_pass=False, double_buffer=double_buffer)

        assert surface.defined_count == n * n
        assert nearest_seed_mismatches(surface) <= (n * n) // 50
        assert surface.color_at(1, 1) == RED
        assert surface.color_at(n - 2, n - 2) == BLUE

        wrong = 0
        for y in range(n):
            for x in range(n):
                assigned = surface.at(x, y).distance_squared(x, y)
                if assigned > brute_force_nearest(seeds, x, y):
                    wrong += 1
        assert wrong == nearest_seed_mismatches(surface)

    def test_ties_go_to_first_neighbor(self, double_buffer):
        """Equal distances keep the neighbor examined first."""
        horizontal = VoronoiSurface(3, 1)
        horizontal.add_seed(0, 0, RED)
        horizontal.add_seed(2, 0, BLUE)
        jump_flood_fill(horizontal, final_pass=False, double_buffer=double_buffer)

        vertical = VoronoiSurface(1, 3)
        vertical.add_seed(0, 2, BLUE)
        vertical.add_seed(0, 0, GREEN)
        jump_flood_fill(vertical, final_pass=False, double_buffer=double_buffer)

        assert horizontal.color_at(1, 0) == RED
        assert vertical.color_at(0, 1) == GREEN

    def test_seeds_never_change(self, double_buffer):
        surface = VoronoiSurface(8, 8)
        surface.add_seed(0, 0, RED)
        surface.add_seed(1, 0, BLUE)
        surface.add_seed(7, 7, GREEN)

        jump_flood_fill(surface, final_pass=True, double_buffer=double_buffer)

        assert surface.at(0, 0).color == RED
        assert surface.at(1, 0).color == BLUE
        assert surface.at(7, 7).seed_location == (7, 7)
        assert surface.seed_count == 3

    def test_sequential_pass_sees_in_pass_updates(self):
        """In raster order a corner seed reaches every pixel."""
        surface = VoronoiSurface(10, 10)
        surface.add_seed(0, 0, RED)

        jump_flood_fill(surface, final_pass=False, double_buffer=False)

        assert surface.defined_count == 100

    def test_double_buffer_leaves_unreached_pixels(self):
        """Steps 5, 2, 1 cannot carry a corner seed 9 pixels."""
        surface = VoronoiSurface(10, 10)
        surface.add_seed(0, 0, RED)

        jump_flood_fill(surface, final_pass=False, double_buffer=True)

        assert not surface.at(9, 9).is_defined
        assert not surface.at(9, 0).is_defined
        assert surface.defined_count == 81

    def test_final_pass_reaches_more(self):
        surface = VoronoiSurface(10, 10)
        surface.add_seed(0, 0, RED)

        passes = jump_flood_fill(surface, final_pass=True, double_buffer=True)

        assert passes == 4
        assert surface.defined_count == 100

    def test_no_seeds(self, double_buffer):
        surface = VoronoiSurface(4, 4)

        with capture_logs() as logs:
            passes = jump_flood_fill(surface, double_buffer=double_buffer)

        assert passes == 0
        assert surface.defined_count == 0
        assert any(entry["log_level"] == "warning" for entry in logs)

    def test_modes_agree_on_power_of_two_grid(self):
        seeds = [(2, 3, RED), (12, 5, BLUE), (7, 14, GREEN)]
        results = []
        for double_buffer in (False, True):
            surface = VoronoiSurface(16, 16)
            for x, y, color in seeds:
                surface.add_seed(x, y, color)
            jump_flood_fill(surface, final_pass=True, double_buffer=double_buffer)
            results.append(surface)

        sequential, buffered = results
        assert sequential.defined_count == buffered.defined_count == 256
        assert nearest_seed_mismatches(sequential) <= 5
        assert nearest_seed_mismatches(buffered) <= 5


class TestNearestSeedMismatches:
    """Test the exact-nearest comparison."""

    def test_counts_wrong_assignment(self):
        surface = VoronoiSurface(5, 1)
        surface.add_seed(0, 0, RED)
        surface.add_seed(4, 0, BLUE)
        surface.is_defined[0, 3] = True
        surface.seed_x[0, 3] = 0
        surface.seed_y[0, 3] = 0
        surface.color_index[0, 3] = 0

        assert nearest_seed_mismatches(surface) == 1

        jump_flood_fill(surface, final_pass=True)

        assert nearest_seed_mismatches(surface) == 0

    def test_no_seeds(self):
        assert nearest_seed_mismatches(VoronoiSurface(3, 3)) == 0


class TestVoronoiFill:
    """Test filling a caller's surface in place."""

    @pytest.fixture
    def seeded(self):
        surface = RGBASurface(8, 8)
        surface.set(1, 1, RED)
        surface.set(6, 6, BLUE)
        return surface

    def test_fill(self, seeded, double_buffer):
        voronoi_fill(seeded, lambda x, y: seeded.at(x, y).a != 0, double_buffer=double_buffer)

        assert seeded.at(0, 0) == RED
        assert seeded.at(2, 3) == RED
        assert seeded.at(7, 7) == BLUE
        assert seeded.at(5, 6) == BLUE
        colors = {seeded.at(x, y) for y in range(8) for x in range(8)}
        assert colors == {RED, BLUE}

    def test_every_pixel_a_seed_is_noop(self):
        rng = np.random.default_rng(7)
        array = rng.integers(0, 0x10000, size=(6, 5, 4), dtype=np.uint16)
        surface = RGBASurface.from_array(array)

        voronoi_fill(surface, lambda x, y: True)

        np.testing.assert_array_equal(surface.to_array(), array)

    def test_unreached_pixels_become_transparent(self):
        surface = RGBASurface(10, 10)
        surface.fill(GREEN)
        surface.set(0, 0, RED)

        voronoi_fill(surface, lambda x, y: (x, y) == (0, 0), final_pass=False, double_buffer=True)

        assert surface.at(8, 8) == RED
        assert surface.at(9, 9) == TRANSPARENT

    def test_no_seeds_clears_surface(self):
        surface = RGBASurface(3, 3)
        surface.fill(GREEN)

        voronoi_fill(surface, lambda x, y: False)

        assert np.all(surface.to_array() == 0)

    def test_read_only_surface(self):
        class ReadOnly:
            def bounds(self):
                return Rectangle(0, 0, 2, 2)

            def at(self, x, y):
                return RED

        with pytest.raises(NotMutableError):
            voronoi_fill(ReadOnly(), lambda x, y: True)

    def test_tuple_bounds_surface(self):
        """bounds() may return a plain tuple."""
        class TupleBounds:
            def __init__(self):
                self.storage = RGBASurface(3, 3)
                self.storage.set(0, 0, RED)

            def bounds(self):
                return (0, 0, 3, 3)

            def at(self, x, y):
                return self.storage.at(x, y)

            def set(self, x, y, color):
                self.storage.set(x, y, color)

        surface = TupleBounds()
        voronoi_fill(surface, lambda x, y: (x, y) == (0, 0))

        assert all(surface.at(x, y) == RED for y in range(3) for x in range(3))

    def test_tuple_bounds_off_origin(self):
        class TupleBounds:
            def bounds(self):
                return (1, 1, 3, 3)

            def at(self, x, y):
                return RED

            def set(self, x, y, color):
                pass

        with pytest.raises(UnsupportedBoundsError):
            voronoi_fill(TupleBounds(), lambda x, y: True)

    def test_bounds_must_start_at_origin(self):
        surface = RGBASurface(4, 4, origin=(1, 0))

        with pytest.raises(UnsupportedBoundsError):
            voronoi_fill(surface, lambda x, y: True)
