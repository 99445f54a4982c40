from __future__ import annotations

from dataclasses import replace

import pytest

from drafting.bounds import figure_world_bounding_box
from drafting.darts import insert_dart
from drafting.edge_ops import edge_length, set_edge_length
from drafting.figure import EdgeStyle, Figure, SeamInfo
from drafting.seam import make_seam_figure
from drafting.shapes import make_curve, make_rect
from drafting.styled_curves import apply_curve_style


def test_figures_with_styles_and_seams_are_hashable() -> None:
    """Figures carrying edge styles and per-edge seam offsets can be hashed."""

    rect = make_rect(10.0, 10.0)
    edge_id = rect.edges[0].id
    figure = replace(
        rect,
        edge_styles={edge_id: EdgeStyle(dash=(5.0, 5.0))},
        seam=SeamInfo(parent_id="parent", offset={edge_id: 1.0}, source_signature="sig"),
    )

    assert hash(figure) == hash(Figure.from_mapping(figure.to_mapping()))
    assert figure == Figure.from_mapping(figure.to_mapping())
    assert {figure: "ok"}[figure] == "ok"


def test_edge_styles_and_seam_offsets_are_read_only() -> None:
    """Stored mappings are copies that cannot be edited in place."""

    styles = {"e1": EdgeStyle(stroke="red")}
    offsets = {"e1": 2.0}
    figure = Figure(
        id="f",
        kind=make_rect(1.0, 1.0).kind,
        edge_styles=styles,
        seam=SeamInfo(parent_id="p", offset=offsets, source_signature=""),
    )
    styles["e2"] = EdgeStyle()
    offsets["e1"] = 5.0

    assert list(figure.edge_styles) == ["e1"]
    assert figure.seam.offset == {"e1": 2.0}
    with pytest.raises(TypeError):
        figure.edge_styles["e3"] = EdgeStyle()  # type: ignore[index]
    with pytest.raises(TypeError):
        figure.seam.offset["e1"] = 3.0  # type: ignore[index]
    assert figure.seam.to_mapping()["offset"] == {"e1": 2.0}


_WITHOUT_EDGES = [
    replace(make_rect(10.0, 10.0), edges=()),
    replace(make_curve((0.0, 0.0), (10.0, 0.0)), edges=()),
]

_OPERATIONS = [
    lambda figure: make_seam_figure(figure, 1.0),
    lambda figure: insert_dart(figure, depth=2.0, left_width=1.0),
    lambda figure: apply_curve_style(figure, "CURVA_DE_BUSTO"),
    figure_world_bounding_box,
    lambda figure: set_edge_length(figure, "edge", 5.0),
    lambda figure: edge_length(figure, "edge"),
]


@pytest.mark.parametrize("operation", _OPERATIONS, ids=["seam", "dart", "style", "bbox", "set-length", "length"])
@pytest.mark.parametrize("figure", _WITHOUT_EDGES, ids=["rect", "curve"])
def test_figures_without_edges_have_no_geometry(figure, operation) -> None:
    """Every engine reports unavailable geometry for a figure with no edges."""

    assert operation(figure) is None
