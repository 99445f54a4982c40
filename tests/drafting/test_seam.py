from __future__ import annotations

import math
from dataclasses import replace

import pytest

from drafting.figure import FigureKind
from drafting.seam import (
    SEAM_DASH,
    make_seam_figure,
    recompute_seam_figure,
    seam_is_stale,
    seam_source_signature,
    sync_seam_figures,
)
from drafting.shapes import make_circle, make_polyline, make_rect


def _positions(figure):
    return [node.position for node in figure.nodes]


def _has_point(figure, target) -> bool:
    return any(math.dist(point, target) <= 1e-6 for point in _positions(figure))


def test_uniform_seam_is_a_closed_dashed_figure() -> None:
    """A uniform seam is a closed, dashed figure at the parent's placement."""

    base = make_rect(10.0, 10.0, x=3.0, y=4.0)

    seam = make_seam_figure(base, 1.0)

    assert seam is not None
    assert seam.kind is FigureKind.SEAM
    assert seam.closed
    assert len(seam.nodes) == 4
    assert _has_point(seam, (-1.0, -1.0))
    assert _has_point(seam, (11.0, 11.0))
    assert (seam.x, seam.y) == (3.0, 4.0)
    assert seam.seam is not None
    assert seam.seam.parent_id == base.id
    assert all(seam.edge_styles[edge.id].dash == SEAM_DASH for edge in seam.edges)


def test_per_edge_seam_is_open_and_records_sources() -> None:
    """A per-edge seam is open and records its source edges."""

    base = make_rect(10.0, 10.0)
    top, right = base.edges[0].id, base.edges[1].id

    seam = make_seam_figure(base, {top: 1.0, right: 1.0, base.edges[2].id: 0.0})

    assert seam is not None
    assert not seam.closed
    assert seam.seam.per_edge
    assert seam.seam.segment_edge_ids == (top, right)
    assert len(seam.edges) == 2


def test_circle_only_supports_uniform_seams() -> None:
    """Circles reject per-edge seams."""

    circle = make_circle(10.0)

    assert make_seam_figure(circle, {circle.edges[0].id: 1.0}) is None
    assert make_seam_figure(circle, 1.0) is not None


def test_open_figures_have_no_seam() -> None:
    """Open figures have no seam."""

    assert make_seam_figure(make_polyline([(0.0, 0.0), (5.0, 0.0)]), 1.0) is None


def test_signature_tracks_geometry_and_offset() -> None:
    """The signature changes with the geometry or the offset."""

    base = make_rect(10.0, 10.0)

    assert seam_source_signature(base, 1.0) == seam_source_signature(base, 1.0)
    assert seam_source_signature(base, 1.0) != seam_source_signature(base, 2.0)


def test_editing_the_parent_makes_the_seam_stale() -> None:
    """Editing the parent marks the seam as stale."""

    base = make_rect(10.0, 10.0)
    seam = make_seam_figure(base, 1.0)
    assert not seam_is_stale(base, seam)

    taller = base.nodes[:2] + tuple(replace(node, y=20.0) for node in base.nodes[2:])
    edited = replace(base, nodes=taller)
    assert seam_is_stale(edited, seam)

    synced = sync_seam_figures([edited, seam])

    assert [figure.id for figure in synced] == [edited.id, seam.id]
    regenerated = synced[1]
    assert _has_point(regenerated, (11.0, 21.0))
    assert not seam_is_stale(edited, regenerated)


def test_seam_follows_parent_placement() -> None:
    """Syncing copies the parent's placement onto the seam."""

    base = make_rect(10.0, 10.0)
    seam = make_seam_figure(base, 1.0)
    moved = replace(base, x=50.0, y=-5.0, rotation=30.0)

    synced = sync_seam_figures([moved, seam])

    assert (synced[1].x, synced[1].y, synced[1].rotation) == (50.0, -5.0, 30.0)
    assert synced[1].nodes == seam.nodes


def test_orphaned_seams_are_dropped() -> None:
    """Seams whose parent is gone are dropped."""

    base = make_rect(10.0, 10.0)
    seam = make_seam_figure(base, 1.0)

    assert sync_seam_figures([seam]) == []


def test_recompute_keeps_the_seam_id() -> None:
    """Recomputing a seam keeps its id."""

    base = make_rect(10.0, 10.0)
    seam = make_seam_figure(base, 1.0)

    wider = recompute_seam_figure(base, seam, 3.0)

    assert wider is not None
    assert wider.id == seam.id
    assert _has_point(wider, (13.0, 13.0))


def test_recompute_requires_seam_metadata_or_offset() -> None:
    """Recomputing needs seam metadata or an explicit offset."""

    base = make_rect(10.0, 10.0)

    with pytest.raises(ValueError):
        recompute_seam_figure(base, base)
