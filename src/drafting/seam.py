"""Derived seam-allowance figures and their staleness tracking."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import replace
from typing import Mapping, Sequence

from .figure import (
    Edge,
    EdgeStyle,
    Figure,
    FigureKind,
    Node,
    SeamInfo,
    SeamOffset,
    new_id,
)
from .offset import offset_figure_per_edge, offset_figure_uniform
from .settings import DEFAULT_SETTINGS, EngineSettings
from .vectors import Point

logger = logging.getLogger(__name__)

SEAM_DASH = (5.0, 5.0)


def _offset_key(offset: SeamOffset) -> object:
    if isinstance(offset, Mapping):
        return {
            str(key): round(float(value), 4)
            for key, value in sorted(offset.items())
            if math.isfinite(float(value))
        }
    value = float(offset)
    return round(value, 4) if math.isfinite(value) else None


def seam_source_signature(base: Figure, offset: SeamOffset) -> str:
    """Stable fingerprint of the geometry and offset a seam was built from."""

    payload = {
        "closed": base.closed,
        "offset": _offset_key(offset),
        "nodes": [node.to_mapping() for node in base.nodes],
        "edges": [edge.to_mapping() for edge in base.edges],
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def _chain(points: Sequence[Point], *, closed: bool) -> tuple[list[Node], list[Edge]]:
    nodes = [Node(id=new_id("node"), x=float(x), y=float(y)) for x, y in points]
    edges: list[Edge] = []
    count = len(nodes)
    limit = count if closed else count - 1
    for index in range(limit):
        edges.append(Edge(id=new_id("edge"), from_node=nodes[index].id, to_node=nodes[(index + 1) % count].id))
    return nodes, edges


def _seam_shell(base: Figure, seam: SeamInfo, nodes: list[Node], edges: list[Edge], *, closed: bool) -> Figure:
    return Figure(
        id=new_id("fig"),
        kind=FigureKind.SEAM,
        nodes=tuple(nodes),
        edges=tuple(edges),
        closed=closed,
        x=base.x,
        y=base.y,
        rotation=base.rotation,
        edge_styles={edge.id: EdgeStyle(dash=SEAM_DASH) for edge in edges},
        seam=seam,
    )


def make_seam_figure(
    base: Figure,
    offset: SeamOffset,
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Figure | None:
    """Build the seam-allowance figure for *base*.

    A scalar offset yields one closed polygon around the outer loop. A mapping
    of edge id to offset yields an open figure made of one polyline per offset
    edge; ``seam.segment_edge_ids`` records which base edge each came from.
    Circles only support scalar offsets. Returns ``None`` when there is no
    closed loop to offset.
    """

    signature = seam_source_signature(base, offset)

    if not isinstance(offset, Mapping):
        points = offset_figure_uniform(base, float(offset), settings=settings)
        if points is None or len(points) < 3:
            logger.debug("No uniform seam for %s at offset %s", base.id, offset)
            return None
        nodes, edges = _chain(points, closed=True)
        info = SeamInfo(parent_id=base.id, offset=float(offset), source_signature=signature)
        return _seam_shell(base, info, nodes, edges, closed=True)

    if base.kind is FigureKind.CIRCLE:
        logger.debug("Per-edge seams are not available on circle %s", base.id)
        return None

    per_edge = {str(key): float(value) for key, value in offset.items()}
    segments = offset_figure_per_edge(base, per_edge, settings=settings)
    if not segments:
        return None

    all_nodes: list[Node] = []
    all_edges: list[Edge] = []
    for segment in segments:
        nodes, edges = _chain(segment.points, closed=False)
        all_nodes.extend(nodes)
        all_edges.extend(edges)
    info = SeamInfo(
        parent_id=base.id,
        offset=per_edge,
        source_signature=signature,
        segment_edge_ids=tuple(segment.edge_id for segment in segments),
    )
    return _seam_shell(base, info, all_nodes, all_edges, closed=False)


def recompute_seam_figure(
    base: Figure,
    seam: Figure,
    offset: SeamOffset | None = None,
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Figure | None:
    """Regenerate *seam* from *base*, keeping the seam's id."""

    if offset is None:
        if seam.seam is None:
            raise ValueError(f"Figure {seam.id} is not a seam figure.")
        offset = seam.seam.offset
    fresh = make_seam_figure(base, offset, settings=settings)
    if fresh is None:
        return None
    return replace(fresh, id=seam.id)


def seam_is_stale(base: Figure, seam: Figure) -> bool:
    if seam.seam is None:
        return False
    return seam_source_signature(base, seam.seam.offset) != seam.seam.source_signature


def sync_seam_figures(
    figures: Sequence[Figure],
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[Figure]:
    """Regenerate stale seams and drop seams whose parent is gone.

    Seams also follow their parent's placement so they never drift apart.
    """

    by_id = {figure.id: figure for figure in figures}
    result: list[Figure] = []
    for figure in figures:
        if figure.kind is not FigureKind.SEAM or figure.seam is None:
            result.append(figure)
            continue
        parent = by_id.get(figure.seam.parent_id)
        if parent is None:
            logger.info("Dropping seam %s: parent %s no longer exists", figure.id, figure.seam.parent_id)
            continue
        seam = figure
        if seam_is_stale(parent, seam):
            regenerated = recompute_seam_figure(parent, seam, settings=settings)
            if regenerated is None:
                logger.info("Dropping seam %s: parent %s has no closed outline", figure.id, parent.id)
                continue
            seam = regenerated
        if (seam.x, seam.y, seam.rotation) != (parent.x, parent.y, parent.rotation):
            seam = replace(seam, x=parent.x, y=parent.y, rotation=parent.rotation)
        result.append(seam)
    return result


__all__ = [
    "SEAM_DASH",
    "make_seam_figure",
    "recompute_seam_figure",
    "seam_is_stale",
    "seam_source_signature",
    "sync_seam_figures",
]
