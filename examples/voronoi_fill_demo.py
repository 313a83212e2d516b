#!/usr/bin/env python3
"""
Demonstration of drawing and Voronoi filling on an in-memory surface.

This script shows:
1. Drawing lines and rectangle outlines
2. Filling scattered seed pixels into a Voronoi diagram
3. Measuring the fill's error against the exact nearest seeds
4. Stacking surfaces as layers
"""

import numpy as np

from py_rasterfill.core import (
    Color,
    CompositeSurface,
    RGBASurface,
    TRANSPARENT,
    VoronoiSurface,
    draw_line,
    draw_rectangle,
    jump_flood_fill,
    nearest_seed_mismatches,
    voronoi_fill,
)
from py_rasterfill.utils import configure_logging


def main():
    configure_logging("INFO", "plain")
    width, height = 64, 48

    print("=== Rasterize and Fill Demo ===\n")

    # 1. Lines and outlines
    print("1. Drawing an outline and two diagonals...")
    canvas = RGBASurface(width, height)
    white = Color(0xFFFF, 0xFFFF, 0xFFFF)
    draw_rectangle((0, 0, width, height), white, canvas)
    draw_line((0, 0), (width - 1, height - 1), white, canvas)
    draw_line((width - 1, 0), (0, height - 1), white, canvas)
    drawn = int(np.count_nonzero(canvas.to_array()[:, :, 3]))
    print(f"   - Pixels drawn: {drawn}")

    # 2. Voronoi fill from random seeds
    print("\n2. Filling 12 random seeds...")
    rng = np.random.default_rng(42)
    seeds = RGBASurface(width, height)
    for _ in range(12):
        x, y = int(rng.integers(width)), int(rng.integers(height))
        r, g, b = (int(c) for c in rng.integers(0, 256, size=3))
        seeds.set(x, y, Color.from_rgba8(r, g, b))
    voronoi_fill(seeds, lambda x, y: seeds.at(x, y) != TRANSPARENT)
    colors = {seeds.at(x, y) for y in range(height) for x in range(width)}
    print(f"   - Distinct region colors: {len(colors)}")

    # 3. Approximation error, with and without the extra step-1 pass
    print("\n3. Comparing against exact nearest seeds...")
    points = [(int(rng.integers(width)), int(rng.integers(height))) for _ in range(40)]
    for final_pass in (False, True):
        voronoi = VoronoiSurface(width, height)
        for index, (x, y) in enumerate(points):
            if not voronoi.is_seed[y, x]:
                voronoi.add_seed(x, y, index)
        jump_flood_fill(voronoi, final_pass=final_pass, double_buffer=True)
        print(f"   - final_pass={final_pass}: "
              f"{nearest_seed_mismatches(voronoi)} mismatched pixels, "
              f"{width * height - voronoi.defined_count} undefined")

    # 4. Composition
    print("\n4. Stacking the outline over the fill...")
    composite = CompositeSurface()
    composite.add_layer(seeds, (0, 0))
    composite.add_layer(canvas, (0, 0))
    print(f"   - Composite bounds: {tuple(composite.bounds())}")
    print(f"   - Corner pixel: {composite.at(0, 0)}")
    print(f"   - Center pixel: {composite.at(width // 2, height // 3)}")

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    main()
