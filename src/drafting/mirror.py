"""Mirroring figures across an axis and unfolding half patterns."""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum

from .bounds import figure_world_bounding_box
from .figure import Dart, Edge, EdgeKind, Figure, FigureKind, Node, NodeMode, new_id
from .figure_path import edge_control_points, figure_local_to_world, simple_chain, world_to_figure_local
from .styled_curves import break_style_link
from .vectors import Point

logger = logging.getLogger(__name__)

AXIS_TOLERANCE = 1e-6


class MirrorAxis(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


def mirror_point(point: Point, axis: MirrorAxis | str, position: float) -> Point:
    """Reflect a world point across ``x = position`` or ``y = position``."""

    if MirrorAxis(axis) is MirrorAxis.VERTICAL:
        return (2.0 * position - point[0], point[1])
    return (point[0], 2.0 * position - point[1])


def default_axis_position(figure: Figure, axis: MirrorAxis | str) -> float:
    box = figure_world_bounding_box(figure)
    vertical = MirrorAxis(axis) is MirrorAxis.VERTICAL
    if box is None:
        return figure.x if vertical else figure.y
    center = box.center
    return center[0] if vertical else center[1]


def _mirror_local(figure: Figure, point: Point, axis: MirrorAxis, position: float) -> Point:
    return world_to_figure_local(figure, mirror_point(figure_local_to_world(figure, point), axis, position))


def _mirror_text(figure: Figure, axis: MirrorAxis, position: float) -> Figure:
    box = figure_world_bounding_box(figure)
    if box is None:
        return replace(figure, id=new_id("fig"))
    if axis is MirrorAxis.VERTICAL:
        return replace(figure, id=new_id("fig"), x=figure.x + (2.0 * position - box.right) - box.x)
    return replace(figure, id=new_id("fig"), y=figure.y + (2.0 * position - box.bottom) - box.y)


def mirror_figure(figure: Figure, axis: MirrorAxis | str, position: float | None = None) -> Figure:
    """Return a mirrored copy of *figure* with fresh ids.

    Nodes, handles, dart anchors and the stored pristine contours are all
    reflected. The axis defaults to the centre of the world bounding box.
    Styled curves lose their preset link and seams their parent link.
    """

    axis = MirrorAxis(axis)
    if position is None:
        position = default_axis_position(figure, axis)
    if figure.kind is FigureKind.TEXT:
        return _mirror_text(figure, axis, position)

    def reflect(point: Point | None) -> Point | None:
        if point is None:
            return None
        return _mirror_local(figure, point, axis, position)

    node_ids = {node.id: new_id("node") for node in figure.nodes}
    nodes: list[Node] = []
    for node in figure.nodes:
        x, y = reflect(node.position)
        nodes.append(
            replace(
                node,
                id=node_ids[node.id],
                x=x,
                y=y,
                in_handle=reflect(node.in_handle),
                out_handle=reflect(node.out_handle),
            )
        )
    edge_ids = {edge.id: new_id("edge") for edge in figure.edges}
    edges = tuple(
        replace(
            edge,
            id=edge_ids[edge.id],
            from_node=node_ids.get(edge.from_node, edge.from_node),
            to_node=node_ids.get(edge.to_node, edge.to_node),
        )
        for edge in figure.edges
    )

    def remap_dart(dart: Dart) -> Dart:
        mapped = None
        if dart.node_ids is not None:
            mapped = tuple(node_ids.get(node_id, node_id) for node_id in dart.node_ids)
        return replace(dart, id=new_id("dart"), point=reflect(dart.point), node_ids=mapped)

    def reflect_all(points: tuple[Point, ...] | None) -> tuple[Point, ...] | None:
        if points is None:
            return None
        return tuple(reflect(point) for point in points)

    mirrored = replace(
        figure,
        id=new_id("fig"),
        nodes=tuple(nodes),
        edges=edges,
        darts=tuple(remap_dart(dart) for dart in figure.darts),
        base_points=reflect_all(figure.base_points),
        dart_snapshot=reflect_all(figure.dart_snapshot),
        edge_styles={edge_ids[key]: style for key, style in figure.edge_styles.items() if key in edge_ids},
        seam=None,
    )
    return break_style_link(mirrored)


def _segments(figure: Figure) -> list[tuple[Point, Point, Point, Point, EdgeKind]] | None:
    chain = simple_chain(figure)
    if not chain:
        return None
    nodes = figure.node_map()
    segments = []
    for edge, forward in chain:
        p0, p1, p2, p3 = edge_control_points(edge, nodes[edge.from_node], nodes[edge.to_node])
        if not forward:
            p0, p1, p2, p3 = p3, p2, p1, p0
        segments.append((p0, p1, p2, p3, edge.kind))
    return segments


def _on_axis(point: Point, axis: MirrorAxis, position: float) -> bool:
    coordinate = point[0] if axis is MirrorAxis.VERTICAL else point[1]
    return abs(coordinate - position) <= AXIS_TOLERANCE


def unfold_figure(figure: Figure, axis: MirrorAxis | str, position: float) -> Figure | None:
    """Close an open half pattern by joining it with its mirror image.

    Chain ends lying on the axis are shared with the mirrored half; other ends
    are bridged by a straight edge. Returns ``None`` for closed figures and for
    figures that are not a single open chain.
    """

    axis = MirrorAxis(axis)
    if figure.closed or figure.kind in (FigureKind.TEXT, FigureKind.SEAM, FigureKind.CIRCLE):
        return None
    segments = _segments(figure)
    if segments is None:
        logger.debug("Figure %s is not a single chain; nothing to unfold", figure.id)
        return None

    def to_world(point: Point) -> Point:
        return figure_local_to_world(figure, point)

    def mirrored(point: Point) -> Point:
        return _mirror_local(figure, point, axis, position)

    first = segments[0][0]
    last = segments[-1][3]
    loop = list(segments)
    if not _on_axis(to_world(last), axis, position):
        tail = mirrored(last)
        loop.append((last, last, tail, tail, EdgeKind.LINE))
    for p0, p1, p2, p3, kind in reversed(segments):
        loop.append((mirrored(p3), mirrored(p2), mirrored(p1), mirrored(p0), kind))
    if not _on_axis(to_world(first), axis, position):
        head = mirrored(first)
        loop.append((head, head, first, first, EdgeKind.LINE))

    if len(loop) < 3:
        return None

    count = len(loop)
    nodes: list[Node] = []
    for index, (p0, p1, _, _, kind) in enumerate(loop):
        incoming = loop[index - 1]
        in_handle = incoming[2] if incoming[4] is EdgeKind.CUBIC else None
        out_handle = p1 if kind is EdgeKind.CUBIC else None
        curved = in_handle is not None or out_handle is not None
        nodes.append(
            Node(
                id=new_id("node"),
                x=p0[0],
                y=p0[1],
                in_handle=in_handle,
                out_handle=out_handle,
                mode=NodeMode.SMOOTH if curved else NodeMode.CORNER,
            )
        )
    edges = tuple(
        Edge(id=new_id("edge"), from_node=nodes[index].id, to_node=nodes[(index + 1) % count].id, kind=loop[index][4])
        for index in range(count)
    )
    return Figure(
        id=new_id("fig"),
        kind=FigureKind.POLYGON,
        nodes=tuple(nodes),
        edges=edges,
        closed=True,
        x=figure.x,
        y=figure.y,
        rotation=figure.rotation,
    )


__all__ = [
    "MirrorAxis",
    "default_axis_position",
    "mirror_figure",
    "mirror_point",
    "unfold_figure",
]
