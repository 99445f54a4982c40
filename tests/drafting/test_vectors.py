from __future__ import annotations

import math

import pytest

from drafting.vectors import (
    line_intersection,
    point_in_polygon,
    point_segment_distance,
    polyline_length,
    sample_cubic,
    screen_ccw_turn,
    segment_intersection,
    signed_area,
)

SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]


def test_sample_cubic_returns_steps_plus_one_with_pinned_ends() -> None:
    """Cubic sampling returns steps + 1 points that start and end on the ends."""

    points = sample_cubic((0.0, 0.0), (3.0, 7.0), (8.0, -2.0), (12.0, 4.0), 10)

    assert len(points) == 11
    assert points[0] == (0.0, 0.0)
    assert points[-1] == (12.0, 4.0)


def test_signed_area_is_positive_for_screen_clockwise_order() -> None:
    """Screen-clockwise order gives a positive signed area."""

    assert signed_area(SQUARE) == pytest.approx(100.0)
    assert signed_area(SQUARE[::-1]) == pytest.approx(-100.0)


def test_parallel_lines_do_not_intersect() -> None:
    """Parallel lines have no intersection."""

    assert line_intersection((0.0, 0.0), (1.0, 0.0), (0.0, 5.0), (2.0, 0.0)) is None


def test_segment_intersection_reports_both_parameters() -> None:
    """Segment intersections report both segment parameters."""

    hit = segment_intersection((0.0, 0.0), (10.0, 10.0), (10.0, 0.0), (0.0, 10.0))

    assert hit is not None
    point, t, u = hit
    assert point == pytest.approx((5.0, 5.0))
    assert t == pytest.approx(0.5)
    assert u == pytest.approx(0.5)


def test_point_in_polygon_uses_even_odd_rule() -> None:
    """Point-in-polygon uses the even-odd rule."""

    assert point_in_polygon((5.0, 5.0), SQUARE)
    assert not point_in_polygon((15.0, 5.0), SQUARE)


def test_point_segment_distance_clamps_to_segment() -> None:
    """Point-to-segment distance clamps to the segment ends."""

    gap, t = point_segment_distance((-3.0, 4.0), (0.0, 0.0), (10.0, 0.0))

    assert gap == pytest.approx(5.0)
    assert t == 0.0


def test_screen_turn_is_positive_for_left_turns_on_y_down_canvas() -> None:
    """Left turns on a y-down canvas are positive."""

    # Heading right, then up the screen.
    assert screen_ccw_turn((1.0, 0.0), (0.0, -1.0)) == pytest.approx(math.pi / 2)
    assert screen_ccw_turn((1.0, 0.0), (0.0, 1.0)) == pytest.approx(-math.pi / 2)


def test_polyline_length_optionally_closes() -> None:
    """Polyline length can include the closing segment."""

    assert polyline_length(SQUARE) == pytest.approx(30.0)
    assert polyline_length(SQUARE, closed=True) == pytest.approx(40.0)
