from __future__ import annotations

import pytest

from drafting.bounds import BoundingBox, figure_world_bounding_box, text_block_size, union_bounding_box
from drafting.figure import TextBlock
from drafting.shapes import make_circle, make_rect, make_text


def test_rect_bounding_box_is_placed_in_world() -> None:
    """A rect's box sits at its world placement."""

    box = figure_world_bounding_box(make_rect(10.0, 20.0, x=5.0, y=5.0))

    assert box == BoundingBox(x=5.0, y=5.0, width=10.0, height=20.0)
    assert box.right == 15.0
    assert box.bottom == 25.0


def test_circle_bounding_box_covers_the_radius() -> None:
    """A circle's sampled box spans its diameter."""

    box = figure_world_bounding_box(make_circle(10.0, x=50.0, y=50.0))

    assert box is not None
    assert box.x == pytest.approx(40.0, abs=0.05)
    assert box.width == pytest.approx(20.0, abs=0.1)


def test_text_size_from_metrics() -> None:
    """Text size is estimated from font metrics alone."""

    width, height = text_block_size(TextBlock(text="abcd", font_size=10.0))

    assert width == pytest.approx(24.8)
    assert height == pytest.approx(12.5)


def test_text_wraps_to_explicit_width() -> None:
    """An explicit width wraps long lines onto extra rows."""

    width, height = text_block_size(TextBlock(text="abcdefgh", font_size=10.0, width=20.0))

    assert width == 20.0
    assert height == pytest.approx(37.5)


def test_short_text_keeps_minimum_width() -> None:
    """Very short text still gets the minimum box width."""

    width, _ = text_block_size(TextBlock(text="i", font_size=6.0))

    assert width == 12.0


def test_blank_text_has_no_box() -> None:
    """Blank text has no size and no bounding box."""

    assert text_block_size(TextBlock(text="   ")) is None
    assert figure_world_bounding_box(make_text("")) is None


def test_text_box_padding_surrounds_the_figure_origin() -> None:
    """Padding extends the text box on every side of its anchor."""

    box = figure_world_bounding_box(make_text("abcd", x=100.0, y=50.0, font_size=10.0, padding=2.0))

    assert box is not None
    assert (box.x, box.y) == pytest.approx((98.0, 48.0))
    assert box.width == pytest.approx(28.8)
    assert box.height == pytest.approx(16.5)


def test_union_skips_figures_without_geometry() -> None:
    """The union ignores figures that have no box."""

    box = union_bounding_box([make_rect(10.0, 10.0), make_text(""), make_rect(5.0, 5.0, x=20.0, y=20.0)])

    assert box == BoundingBox(x=0.0, y=0.0, width=25.0, height=25.0)


def test_intersects_includes_touching_edges() -> None:
    """Boxes that only touch still count as intersecting."""

    box = BoundingBox(x=0.0, y=0.0, width=10.0, height=10.0)

    assert box.intersects(BoundingBox(x=10.0, y=5.0, width=4.0, height=4.0))
    assert box.intersects(BoundingBox(x=2.0, y=2.0, width=1.0, height=1.0))
    assert not box.intersects(BoundingBox(x=10.5, y=0.0, width=4.0, height=4.0))
