from __future__ import annotations

import math

import pytest

from drafting.figure import Figure, FigureKind
from drafting.offset import (
    find_self_intersections,
    offset_figure_per_edge,
    offset_figure_uniform,
    offset_polygon,
    resolve_self_intersections,
)
from drafting.shapes import make_circle, make_polygon, make_polyline, make_rect
from drafting.vectors import signed_area

SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
L_SHAPE = [(0.0, 0.0), (10.0, 0.0), (10.0, 4.0), (4.0, 4.0), (4.0, 10.0), (0.0, 10.0)]


def _contains(points, target, tol=1e-6) -> bool:
    return any(math.dist(point, target) <= tol for point in points)


def test_square_grows_by_miters() -> None:
    """A square offset outward keeps mitred corners."""

    result = offset_polygon(SQUARE, 1.0)

    assert result is not None
    assert len(result) == 4
    for corner in [(-1.0, -1.0), (11.0, -1.0), (11.0, 11.0), (-1.0, 11.0)]:
        assert _contains(result, corner)
    assert signed_area(result) == pytest.approx(144.0)


def test_offset_keeps_winding_for_either_orientation() -> None:
    """The offset grows outward for either winding."""

    result = offset_polygon(SQUARE[::-1], 1.0)

    assert result is not None
    assert signed_area(result) == pytest.approx(-144.0)


def test_negative_offset_shrinks() -> None:
    """A negative offset shrinks the polygon."""

    result = offset_polygon(SQUARE, -1.0)

    assert result is not None
    assert signed_area(result) == pytest.approx(64.0)
    assert _contains(result, (1.0, 1.0))


def test_concave_corner_uses_the_crossing_point() -> None:
    """Concave corners meet at the offset lines' crossing."""

    result = offset_polygon(L_SHAPE, 1.0)

    assert result is not None
    assert _contains(result, (5.0, 5.0))
    assert find_self_intersections(result) == []
    assert abs(signed_area(result)) > abs(signed_area(L_SHAPE))


def test_zero_offset_returns_the_cleaned_polygon() -> None:
    """A zero offset returns the deduplicated polygon."""

    assert offset_polygon(SQUARE + [(0.0, 0.0)], 0.0) == SQUARE


def test_degenerate_polygons_have_no_offset() -> None:
    """Too few or collinear points give no offset."""

    assert offset_polygon([(0.0, 0.0), (1.0, 0.0)], 1.0) is None
    assert offset_polygon([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)], 1.0) is None


def test_bowtie_keeps_one_lobe() -> None:
    """A self-intersecting result keeps a single lobe."""

    bowtie = [(0.0, 0.0), (10.0, 10.0), (10.0, 0.0), (0.0, 10.0)]

    crossings = find_self_intersections(bowtie)
    assert len(crossings) == 1
    assert crossings[0].point == pytest.approx((5.0, 5.0))

    resolved = resolve_self_intersections(bowtie)
    assert len(resolved) == 3
    assert find_self_intersections(resolved) == []


def test_uniform_offset_of_a_rect_figure() -> None:
    """A rect figure's uniform offset grows by the allowance."""

    points = offset_figure_uniform(make_rect(10.0, 10.0), 2.0)

    assert points is not None
    assert signed_area(points) == pytest.approx(196.0)


def test_uniform_offset_of_a_circle_stays_round() -> None:
    """A circle's offset stays at the enlarged radius."""

    points = offset_figure_uniform(make_circle(10.0), 2.0)

    assert points is not None
    for x, y in points:
        assert math.hypot(x, y) == pytest.approx(12.0, abs=0.05)


def test_uniform_offset_needs_a_closed_loop() -> None:
    """Open and empty figures have no uniform offset."""

    assert offset_figure_uniform(make_polyline([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)]), 1.0) is None
    assert offset_figure_uniform(Figure(id="bare", kind=FigureKind.POLYGON), 1.0) is None


def test_per_edge_offset_skips_non_positive_values() -> None:
    """Edges with zero or negative offsets are skipped."""

    figure = make_rect(10.0, 10.0)
    top, right, bottom, _ = (edge.id for edge in figure.edges)

    segments = offset_figure_per_edge(figure, {top: 2.0, right: 0.0, bottom: -1.0})

    assert segments is not None
    assert [segment.edge_id for segment in segments] == [top]
    start, end = segments[0].points
    assert start == pytest.approx((0.0, -2.0))
    assert end == pytest.approx((10.0, -2.0))


def test_adjacent_per_edge_offsets_are_stitched() -> None:
    """Neighbouring offset edges meet at a shared corner."""

    figure = make_rect(10.0, 10.0)
    top, right = figure.edges[0].id, figure.edges[1].id

    segments = offset_figure_per_edge(figure, {top: 1.0, right: 1.0})

    assert segments is not None
    assert segments[0].points[-1] == pytest.approx((11.0, -1.0))
    assert segments[1].points[0] == pytest.approx((11.0, -1.0))


def test_per_edge_offset_with_nothing_to_offset() -> None:
    """An empty offset mapping gives ``None``."""

    figure = make_polygon([(0.0, 0.0), (10.0, 0.0), (5.0, 8.0)])

    assert offset_figure_per_edge(figure, {}) is None
    assert offset_figure_per_edge(figure, {figure.edges[0].id: float("nan")}) is None
