"""Single-edge edits: switching edge kind and resizing to a target length."""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum

from .figure import Edge, EdgeKind, Figure, Node, NodeMode
from .figure_path import edge_control_points
from .vectors import Point, add, clamp, distance, length, lerp, normalize, polyline_length, sample_cubic, scale, sub

logger = logging.getLogger(__name__)

MIN_HANDLE_LENGTH = 8.0
MIN_TARGET_LENGTH = 1e-4
ARC_LENGTH_STEPS = 80
BRACKET_DOUBLINGS = 16
BISECTION_STEPS = 24


class EdgeAnchor(str, Enum):
    """Which part of the edge stays put while its length changes."""

    START = "start"
    END = "end"
    MID = "mid"


def _other_cubic(figure: Figure, node_id: str, edge_id: str, *, outgoing: bool) -> bool:
    for edge in figure.edges:
        if edge.id == edge_id or edge.kind is not EdgeKind.CUBIC:
            continue
        if (edge.from_node if outgoing else edge.to_node) == node_id:
            return True
    return False


def _lookup(figure: Figure, edge_id: str) -> tuple[Edge, Node, Node] | None:
    edge = figure.get_edge(edge_id)
    if edge is None:
        return None
    start = figure.get_node(edge.from_node)
    end = figure.get_node(edge.to_node)
    if start is None or end is None:
        return None
    return edge, start, end


def _replace_nodes(figure: Figure, changed: dict[str, Node]) -> tuple[Node, ...]:
    return tuple(changed.get(node.id, node) for node in figure.nodes)


def _replace_edge(figure: Figure, edge_id: str, kind: EdgeKind) -> tuple[Edge, ...]:
    return tuple(replace(edge, kind=kind) if edge.id == edge_id else edge for edge in figure.edges)


def convert_edge_to_cubic(figure: Figure, edge_id: str) -> Figure:
    """Turn a line edge into a cubic with handles along the chord.

    A node's handle is only written when no other cubic already uses that
    side of the node.
    """

    found = _lookup(figure, edge_id)
    if found is None:
        return figure
    edge, start, end = found
    if edge.kind is EdgeKind.CUBIC:
        return figure

    chord = sub(end.position, start.position)
    chord_length = length(chord)
    direction = normalize(chord)
    handle_length = clamp(chord_length * 0.25, MIN_HANDLE_LENGTH, chord_length * 0.45)
    out_handle = add(start.position, scale(direction, handle_length))
    in_handle = sub(end.position, scale(direction, handle_length))

    changed: dict[str, Node] = {}
    if not _other_cubic(figure, start.id, edge_id, outgoing=True):
        changed[start.id] = replace(start, out_handle=out_handle, mode=NodeMode.SMOOTH)
    if not _other_cubic(figure, end.id, edge_id, outgoing=False):
        target = changed.get(end.id, end)
        changed[end.id] = replace(target, in_handle=in_handle, mode=NodeMode.SMOOTH)
    return replace(figure, nodes=_replace_nodes(figure, changed), edges=_replace_edge(figure, edge_id, EdgeKind.CUBIC))


def convert_edge_to_line(figure: Figure, edge_id: str) -> Figure:
    """Turn a cubic edge into a line, clearing handles nothing else uses."""

    found = _lookup(figure, edge_id)
    if found is None:
        return figure
    edge, start, end = found
    if edge.kind is EdgeKind.LINE:
        return figure

    def _settle(node: Node) -> Node:
        still_curved = _other_cubic(figure, node.id, edge_id, outgoing=True) or _other_cubic(
            figure, node.id, edge_id, outgoing=False
        )
        if not still_curved and node.in_handle is None and node.out_handle is None:
            return replace(node, mode=NodeMode.CORNER)
        return node

    changed: dict[str, Node] = {}
    if not _other_cubic(figure, start.id, edge_id, outgoing=True):
        changed[start.id] = _settle(replace(start, out_handle=None))
    if not _other_cubic(figure, end.id, edge_id, outgoing=False):
        target = changed.get(end.id, end)
        changed[end.id] = _settle(replace(target, in_handle=None))
    return replace(figure, nodes=_replace_nodes(figure, changed), edges=_replace_edge(figure, edge_id, EdgeKind.LINE))


def _translate(node: Node, delta: Point) -> Node:
    return replace(
        node,
        x=node.x + delta[0],
        y=node.y + delta[1],
        in_handle=add(node.in_handle, delta) if node.in_handle is not None else None,
        out_handle=add(node.out_handle, delta) if node.out_handle is not None else None,
    )


def cubic_arc_length(p0: Point, p1: Point, p2: Point, p3: Point) -> float:
    return polyline_length(sample_cubic(p0, p1, p2, p3, ARC_LENGTH_STEPS))


def solve_end_displacement(
    controls: tuple[Point, Point, Point, Point],
    *,
    move_start: bool,
    direction: Point,
    target: float,
) -> float:
    """Distance to slide one endpoint (with its handle) along *direction*.

    The arc length is bracketed by doubling and then bisected. When no
    bracket is found the raw length difference is returned, clamped to four
    times the current length.
    """

    unit = normalize(direction)
    p0, p1, p2, p3 = controls

    def arc_length_at(amount: float) -> float:
        delta = scale(unit, amount)
        if move_start:
            return cubic_arc_length(add(p0, delta), add(p1, delta), p2, p3)
        return cubic_arc_length(p0, p1, add(p2, delta), add(p3, delta))

    current = arc_length_at(0.0)
    target = max(MIN_TARGET_LENGTH, target)
    if current <= 1e-9:
        return 0.0

    grow = target > current

    def reached(value: float) -> bool:
        return value >= target if grow else value <= target

    high = current if grow else -current
    high_length = arc_length_at(high)
    for _ in range(BRACKET_DOUBLINGS):
        if reached(high_length):
            break
        high *= 2.0
        high_length = arc_length_at(high)
    if not reached(high_length):
        logger.debug("Could not bracket arc length %.3f from %.3f", target, current)
        return clamp(target - current, -4.0 * current, 4.0 * current)

    low = 0.0
    for _ in range(BISECTION_STEPS):
        middle = (low + high) / 2.0
        if reached(arc_length_at(middle)):
            high = middle
        else:
            low = middle
    return (low + high) / 2.0


def set_edge_length(
    figure: Figure,
    edge_id: str,
    target: float,
    anchor: EdgeAnchor | str = EdgeAnchor.START,
) -> Figure | None:
    """Resize an edge to *target* drawing units.

    Lines slide the free end along the chord; with ``mid`` both ends move
    symmetrically. Cubics slide the free end outward along its end tangent
    until the sampled arc length matches; ``mid`` scales the chord instead.
    Moved nodes carry their handles along. Returns ``None`` when the edge or
    one of its nodes is missing.
    """

    found = _lookup(figure, edge_id)
    if found is None:
        return None
    edge, start, end = found
    anchor = EdgeAnchor(anchor)
    desired = max(MIN_TARGET_LENGTH, float(target))

    a = start.position
    b = end.position
    chord = sub(b, a)
    chord_direction = normalize(chord) if length(chord) > 1e-9 else (1.0, 0.0)
    moves: dict[str, Point] = {}

    if edge.kind is EdgeKind.LINE:
        if anchor is EdgeAnchor.START:
            moves[end.id] = sub(add(a, scale(chord_direction, desired)), b)
        elif anchor is EdgeAnchor.END:
            moves[start.id] = sub(sub(b, scale(chord_direction, desired)), a)
        else:
            mid = lerp(a, b, 0.5)
            moves[start.id] = sub(sub(mid, scale(chord_direction, desired / 2.0)), a)
            moves[end.id] = sub(add(mid, scale(chord_direction, desired / 2.0)), b)
    else:
        controls = edge_control_points(edge, start, end)
        p0, p1, p2, p3 = controls
        if anchor is EdgeAnchor.MID:
            current = cubic_arc_length(*controls)
            ratio = desired / current if current > 1e-6 else 1.0
            half_shift = (ratio - 1.0) * length(chord) / 2.0
            moves[start.id] = scale(chord_direction, -half_shift)
            moves[end.id] = scale(chord_direction, half_shift)
        elif anchor is EdgeAnchor.START:
            tangent = sub(p3, p2)
            direction = tangent if length(tangent) > 1e-6 else chord
            amount = solve_end_displacement(controls, move_start=False, direction=direction, target=desired)
            moves[end.id] = scale(normalize(direction), amount)
        else:
            tangent = sub(p0, p1)
            direction = tangent if length(tangent) > 1e-6 else scale(chord, -1.0)
            amount = solve_end_displacement(controls, move_start=True, direction=direction, target=desired)
            moves[start.id] = scale(normalize(direction), amount)

    changed = {node_id: _translate(figure.get_node(node_id), delta) for node_id, delta in moves.items()}
    return replace(figure, nodes=_replace_nodes(figure, changed))


def edge_length(figure: Figure, edge_id: str) -> float | None:
    found = _lookup(figure, edge_id)
    if found is None:
        return None
    edge, start, end = found
    if edge.kind is EdgeKind.LINE:
        return distance(start.position, end.position)
    return cubic_arc_length(*edge_control_points(edge, start, end))


__all__ = [
    "EdgeAnchor",
    "convert_edge_to_cubic",
    "convert_edge_to_line",
    "cubic_arc_length",
    "edge_length",
    "set_edge_length",
    "solve_end_displacement",
]
