"""Tests for display ordering of plot corners and the plot colour palette."""

import itertools
import math

from src.services.geometry import PLOT_COLORS, get_plot_color, order_corners_for_display


def _segments_cross(p1, p2, p3, p4) -> bool:
    """True if open segments p1-p2 and p3-p4 properly intersect."""

    def orient(a, b, c):
        return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])

    d1, d2 = orient(p3, p4, p1), orient(p3, p4, p2)
    d3, d4 = orient(p1, p2, p3), orient(p1, p2, p4)
    return d1 * d2 < 0 and d3 * d4 < 0


def _is_simple_ring(points) -> bool:
    edges = [(points[i], points[(i + 1) % len(points)]) for i in range(len(points))]
    for (i, a), (j, b) in itertools.combinations(enumerate(edges), 2):
        if abs(i - j) in (1, len(edges) - 1):
            continue
        if _segments_cross(*a, *b):
            return False
    return True


class TestOrderCornersForDisplay:
    """Verify angular sorting around the centroid."""

    def test_bowtie_square_is_untangled(self):
        """A square entered in crossing order comes back as a simple ring."""
        crossed = [(0.0, 0.0), (1.0, 1.0), (0.0, 1.0), (1.0, 0.0)]
        assert not _is_simple_ring(crossed)
        ordered = order_corners_for_display(crossed)
        assert _is_simple_ring(ordered)
        assert sorted(ordered) == sorted(crossed)

    def test_sorted_by_angle_from_centroid(self):
        points = [(1.0, 0.0), (0.0, 1.0), (-1.0, 0.0), (0.0, -1.0)]
        ordered = order_corners_for_display(points)
        angles = [math.atan2(lat, lng) for lat, lng in ordered]
        assert angles == sorted(angles)

    def test_convex_hexagon_any_input_order(self):
        hexagon = [
            (math.sin(2 * math.pi * k / 6), math.cos(2 * math.pi * k / 6)) for k in range(6)
        ]
        shuffled = [hexagon[i] for i in (3, 0, 5, 1, 4, 2)]
        assert _is_simple_ring(order_corners_for_display(shuffled))

    def test_idempotent(self):
        points = [(37.1, -122.0), (37.0, -121.9), (37.1, -121.9), (37.0, -122.0), (37.05, -121.95)]
        once = order_corners_for_display(points)
        assert order_corners_for_display(once) == once

    def test_is_permutation(self):
        points = [(3.0, 1.0), (1.0, 2.0), (2.0, 5.0), (0.5, 0.5)]
        assert sorted(order_corners_for_display(points)) == sorted(points)

    def test_two_points_unchanged(self):
        points = [(5.0, 5.0), (1.0, 1.0)]
        assert order_corners_for_display(points) == points

    def test_empty(self):
        assert order_corners_for_display([]) == []

    def test_returns_new_list(self):
        points = [(0.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
        result = order_corners_for_display(points)
        assert result is not points
        assert points == [(0.0, 0.0), (1.0, 1.0), (0.0, 1.0)]

    def test_equal_angles_keep_input_order(self):
        """Collinear points on the same ray from the centroid stay stable."""
        points = [(0.0, 1.0), (0.0, 2.0), (0.0, -3.0)]
        ordered = order_corners_for_display(points)
        assert ordered.index((0.0, 1.0)) < ordered.index((0.0, 2.0))


class TestPlotColors:
    """Verify the cycling palette."""

    def test_first_colour_is_brand_gold(self):
        assert get_plot_color(0) == "#cfb991"

    def test_palette_cycles(self):
        assert get_plot_color(len(PLOT_COLORS)) == get_plot_color(0)
        assert get_plot_color(len(PLOT_COLORS) + 3) == get_plot_color(3)

    def test_palette_has_eight_distinct_colours(self):
        assert len(set(PLOT_COLORS)) == 8
