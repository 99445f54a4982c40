from __future__ import annotations

import pytest

from drafting.figure import CustomCurve, EdgeKind, FigureKind
from drafting.mirror import MirrorAxis, mirror_figure, mirror_point, unfold_figure
from drafting.shapes import make_curve, make_polygon, make_polyline, make_rect
from drafting.styled_curves import apply_curve_style
from drafting.vectors import signed_area


def test_mirror_point_on_both_axes() -> None:
    """Points mirror across vertical and horizontal axes."""

    assert mirror_point((3.0, 4.0), MirrorAxis.VERTICAL, 1.0) == (-1.0, 4.0)
    assert mirror_point((3.0, 4.0), "horizontal", 0.0) == (3.0, -4.0)


def test_mirroring_twice_restores_positions() -> None:
    """Mirroring twice about the same axis restores the positions."""

    figure = make_polygon([(0.0, 0.0), (10.0, 0.0), (4.0, 7.0)], x=5.0, y=2.0)

    once = mirror_figure(figure, MirrorAxis.VERTICAL, 0.0)
    twice = mirror_figure(once, MirrorAxis.VERTICAL, 0.0)

    assert once.nodes[1].position == pytest.approx((-20.0, 0.0))
    for original, restored in zip(figure.nodes, twice.nodes):
        assert restored.position == pytest.approx(original.position)


def test_mirror_assigns_fresh_ids() -> None:
    """The mirrored figure gets fresh figure, node and edge ids."""

    figure = make_rect(10.0, 5.0)

    mirrored = mirror_figure(figure, "horizontal")

    assert mirrored.id != figure.id
    assert not {node.id for node in mirrored.nodes} & {node.id for node in figure.nodes}
    node_ids = {node.id for node in mirrored.nodes}
    assert all(edge.from_node in node_ids and edge.to_node in node_ids for edge in mirrored.edges)


def test_default_axis_keeps_the_bounding_box() -> None:
    """The default axis mirrors a figure in place."""

    figure = make_rect(10.0, 5.0, x=20.0)

    mirrored = mirror_figure(figure, MirrorAxis.VERTICAL)

    xs = sorted(node.x + mirrored.x for node in mirrored.nodes)
    assert xs == pytest.approx([20.0, 20.0, 30.0, 30.0])


def test_mirrored_styled_curve_becomes_custom() -> None:
    """A mirrored styled curve becomes a custom curve."""

    styled = apply_curve_style(make_curve((0.0, 0.0), (100.0, 0.0)), "CURVA_DE_BUSTO")

    mirrored = mirror_figure(styled, MirrorAxis.HORIZONTAL, 0.0)

    assert mirrored.curve == CustomCurve(derived_from=("CURVA_DE_BUSTO", "ARC_MED"))
    assert mirrored.nodes[0].out_handle == pytest.approx((33.0, -25.0))


def test_unfold_shares_ends_on_the_axis() -> None:
    """Chain ends on the axis are shared with the mirrored half."""

    half = make_polyline([(0.0, 0.0), (10.0, 0.0), (10.0, 20.0), (0.0, 20.0)])

    whole = unfold_figure(half, MirrorAxis.VERTICAL, 0.0)

    assert whole is not None
    assert whole.closed
    assert whole.kind is FigureKind.POLYGON
    assert len(whole.nodes) == 6
    assert len(whole.edges) == 6
    assert abs(signed_area([node.position for node in whole.nodes])) == pytest.approx(400.0)


def test_unfold_bridges_ends_off_the_axis() -> None:
    """Chain ends off the axis are joined by straight edges."""

    half = make_polyline([(2.0, 0.0), (10.0, 0.0), (10.0, 20.0), (2.0, 20.0)])

    whole = unfold_figure(half, MirrorAxis.VERTICAL, 0.0)

    assert len(whole.nodes) == 8
    assert abs(signed_area([node.position for node in whole.nodes])) == pytest.approx(400.0)


def test_unfold_keeps_curved_edges() -> None:
    """Unfolding keeps cubic edges cubic."""

    half = make_curve((0.0, 0.0), (10.0, 20.0))

    whole = unfold_figure(half, "vertical", 0.0)

    assert [edge.kind for edge in whole.edges] == [EdgeKind.CUBIC, EdgeKind.LINE, EdgeKind.CUBIC]
    assert whole.nodes[1].in_handle is not None


def test_closed_figures_do_not_unfold() -> None:
    """Closed figures cannot be unfolded."""

    assert unfold_figure(make_rect(10.0, 10.0), MirrorAxis.VERTICAL, 0.0) is None
