from __future__ import annotations

import pytest

from drafting.darts import (
    base_chain,
    base_polygon,
    dart_geometries,
    freeze_dart,
    insert_dart,
    remove_dart,
    update_dart,
    with_base_points,
)
from drafting.figure import CustomCurve, DartLink, DartSymmetry, EdgeKind
from drafting.settings import EngineSettings
from drafting.shapes import make_circle, make_curve, make_polyline, make_rect
from drafting.styled_curves import apply_curve_style
from drafting.vectors import distance


def _positions(figure):
    return [node.position for node in figure.nodes]


def _edge_lengths(figure):
    nodes = figure.node_map()
    return [distance(nodes[edge.from_node].position, nodes[edge.to_node].position) for edge in figure.edges]


def test_insert_dart_on_bottom_edge() -> None:
    """A dart on a rectangle's bottom edge splices three nodes into the loop."""

    figure = make_rect(10.0, 10.0)

    darted = insert_dart(figure, 0.625, depth=3.0, left_width=1.0, dart_id="d1")

    assert darted is not None
    (geometry,) = dart_geometries(darted)
    assert geometry.left == pytest.approx((6.0, 10.0))
    assert geometry.right == pytest.approx((4.0, 10.0))
    assert geometry.apex == pytest.approx((5.0, 7.0))
    assert len(darted.nodes) == 7
    assert len(darted.edges) == 7
    assert darted.closed
    assert darted.dart_snapshot == ((0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0))


def test_removing_the_last_dart_restores_the_contour() -> None:
    """Removing the only dart restores the original nodes and their ids."""

    figure = make_rect(10.0, 10.0)
    original_ids = [node.id for node in figure.nodes]
    darted = insert_dart(figure, 0.625, depth=3.0, left_width=1.0, dart_id="d1")

    restored = remove_dart(darted, "d1")

    assert _positions(restored) == _positions(figure)
    assert [node.id for node in restored.nodes] == original_ids
    assert restored.darts == ()
    assert restored.dart_snapshot is None


def test_dart_node_ids_survive_updates() -> None:
    """Changing a dart's depth moves its apex without renaming its nodes."""

    darted = insert_dart(make_rect(10.0, 10.0), 0.625, depth=3.0, left_width=1.0, dart_id="d1")
    node_ids = darted.darts[0].node_ids

    deeper = update_dart(darted, "d1", depth=4.0)

    assert deeper.darts[0].node_ids == node_ids
    apex = deeper.get_node(node_ids[1])
    assert apex.position == pytest.approx((5.0, 6.0))


def test_asymmetric_widths() -> None:
    """Asymmetric darts open by different amounts on each side."""

    darted = insert_dart(
        make_rect(10.0, 10.0),
        0.125,
        depth=2.0,
        left_width=1.0,
        right_width=2.0,
        symmetry=DartSymmetry.ASYMMETRIC,
    )

    (geometry,) = dart_geometries(darted)
    assert geometry.left == pytest.approx((4.0, 0.0))
    assert geometry.right == pytest.approx((7.0, 0.0))
    assert geometry.apex == pytest.approx((5.0, 2.0))


def test_parameters_are_clamped_to_safe_minimums() -> None:
    """Depth, half width and position are clamped into their valid ranges."""

    settings = EngineSettings()
    darted = insert_dart(make_rect(10.0, 10.0), 1.7, depth=0.0, left_width=-3.0, settings=settings)

    dart = darted.darts[0]
    assert dart.depth == settings.dart_min_depth
    assert dart.left_width == settings.dart_min_half_width
    assert dart.position == 1.0
    assert all(length > 1e-6 for length in _edge_lengths(darted))


def test_dart_at_a_corner_reuses_the_corner_node() -> None:
    """A base point clamped onto a corner shares the corner's node."""

    figure = make_rect(10.0, 10.0)
    first_id = figure.nodes[0].id

    darted = insert_dart(figure, 0.0, depth=3.0, left_width=1.0)

    (geometry,) = dart_geometries(darted)
    assert geometry.left == pytest.approx((0.0, 0.0))
    assert geometry.apex == pytest.approx((0.0, 3.0))
    assert geometry.right == pytest.approx((1.0, 0.0))
    assert len(darted.nodes) == 6
    assert len(darted.edges) == 6
    assert darted.darts[0].node_ids[0] == first_id
    assert all(length > 1e-6 for length in _edge_lengths(darted))


def test_dart_wider_than_its_edge_snaps_to_both_corners() -> None:
    """An opening wider than the edge lands on the edge's two corners."""

    figure = make_rect(1.0, 1.0)
    corner_ids = [node.id for node in figure.nodes]

    darted = insert_dart(figure, 0.625, depth=0.3, left_width=1.0)

    assert _positions(darted) == pytest.approx([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.5, 0.7), (0.0, 1.0)])
    left_id, _, right_id = darted.darts[0].node_ids
    assert (left_id, right_id) == (corner_ids[2], corner_ids[3])
    assert len({node.id for node in darted.nodes}) == 5
    assert all(length > 1e-6 for length in _edge_lengths(darted))


def test_follow_and_frozen_darts_react_differently_to_base_edits() -> None:
    """Follow darts keep their fraction; frozen darts keep their point."""

    figure = make_rect(10.0, 10.0)
    figure = insert_dart(figure, 0.125, depth=2.0, left_width=1.0, dart_id="follow")
    figure = insert_dart(figure, 0.05, depth=2.0, left_width=1.0, dart_id="frozen", link=DartLink.FROZEN)
    assert figure.darts[1].point == pytest.approx((2.0, 0.0))

    wider = with_base_points(figure, [(0.0, 0.0), (20.0, 0.0), (20.0, 10.0), (0.0, 10.0)])

    anchors = {geometry.dart_id: geometry for geometry in dart_geometries(wider)}
    assert anchors["follow"].apex == pytest.approx((7.5, 2.0))
    assert anchors["frozen"].apex == pytest.approx((2.0, 2.0))


def test_freezing_keeps_the_current_location() -> None:
    """Freezing records the point the dart currently resolves to."""

    darted = insert_dart(make_rect(10.0, 10.0), 0.625, depth=3.0, left_width=1.0, dart_id="d1")

    frozen = freeze_dart(darted, "d1")

    assert frozen.darts[0].link is DartLink.FROZEN
    assert frozen.darts[0].point == pytest.approx((5.0, 10.0))


def test_circle_darts_use_the_sampled_base() -> None:
    """Circles are darted on their sampled polygon, apex pointing inward."""

    circle = make_circle(10.0)

    polygon = base_polygon(circle)
    darted = insert_dart(circle, 0.0, depth=3.0, left_width=0.5)

    assert polygon is not None and len(polygon) == 64
    (geometry,) = dart_geometries(darted)
    assert geometry.apex == pytest.approx((7.0, 0.0), abs=0.2)


def test_line_dart_runs_start_left_apex_right_end() -> None:
    """A dart on an open line yields start, left, apex, right and end."""

    line = make_polyline([(0.0, 0.0), (100.0, 0.0)])
    start_id, end_id = (node.id for node in line.nodes)

    darted = insert_dart(line, 0.5, depth=3.0, left_width=1.0)

    assert darted is not None
    assert not darted.closed
    assert _positions(darted) == pytest.approx([(0.0, 0.0), (49.0, 0.0), (50.0, 3.0), (51.0, 0.0), (100.0, 0.0)])
    assert (darted.nodes[0].id, darted.nodes[-1].id) == (start_id, end_id)
    assert len(darted.edges) == 4
    assert base_polygon(darted) is None


def test_curve_dart_is_placed_on_the_sampled_chain() -> None:
    """A curve takes its dart on the sampled chain and becomes straight edges."""

    curve = make_curve((0.0, 0.0), (100.0, 0.0))

    darted = insert_dart(curve, 0.5, depth=3.0, left_width=1.0)

    (geometry,) = dart_geometries(darted)
    assert geometry.left == pytest.approx((49.0, 0.0))
    assert geometry.apex == pytest.approx((50.0, 3.0))
    assert geometry.right == pytest.approx((51.0, 0.0))
    assert not darted.closed
    assert all(edge.kind is EdgeKind.LINE for edge in darted.edges)
    assert not any(node.position == pytest.approx((50.0, 0.0)) for node in darted.nodes)
    assert len(base_chain(darted)) == len(base_chain(curve))


def test_darting_a_styled_curve_breaks_its_style_link() -> None:
    """Darting a styled curve turns it into a custom curve."""

    styled = apply_curve_style(make_curve((0.0, 0.0), (100.0, 0.0)), "CURVA_DE_BUSTO")

    darted = insert_dart(styled, 0.5, depth=3.0, left_width=1.0)

    assert isinstance(darted.curve, CustomCurve)
    assert darted.curve.derived_from[0] == "CURVA_DE_BUSTO"


def test_unknown_dart_ids_raise() -> None:
    """Unknown dart ids raise ``KeyError``."""

    figure = make_rect(10.0, 10.0)

    with pytest.raises(KeyError):
        remove_dart(figure, "missing")
    with pytest.raises(KeyError):
        update_dart(figure, "missing", depth=2.0)


def test_base_points_need_enough_points() -> None:
    """Closed bases need three points, open chains two."""

    with pytest.raises(ValueError):
        with_base_points(make_rect(1.0, 1.0), [(0.0, 0.0), (1.0, 0.0)])
    with pytest.raises(ValueError):
        with_base_points(make_polyline([(0.0, 0.0), (1.0, 0.0)]), [(0.0, 0.0)])
