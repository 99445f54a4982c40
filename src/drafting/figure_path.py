"""Turn a figure's node/edge graph into ordered polylines.

Simple contours (every node of degree two or less, one connected chain) are
walked directly. Fused or overlapping contours fall back, in order, to the
boundary walk, a directed traversal and finally plain edge order.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .figure import Edge, EdgeKind, Figure, Node
from .vectors import (
    Point,
    add,
    distance,
    flatten_points,
    normalize,
    rotate,
    rotate_inv,
    sample_cubic,
    screen_ccw_turn,
    sub,
)

logger = logging.getLogger(__name__)

DEFAULT_STEPS = 30
_SAME_POINT = 1e-9
_UTURN_TOLERANCE = 1e-6

# An edge traversed in a given direction: (edge, forward).
Traversal = tuple[Edge, bool]


def edge_control_points(edge: Edge, start: Node, end: Node) -> tuple[Point, Point, Point, Point]:
    """Control polygon of *edge*; missing handles collapse onto their node."""

    p0 = start.position
    p3 = end.position
    p1 = start.out_handle if start.out_handle is not None else p0
    p2 = end.in_handle if end.in_handle is not None else p3
    return p0, p1, p2, p3


def edge_local_points(
    figure: Figure,
    edge: Edge,
    steps: int = DEFAULT_STEPS,
    *,
    nodes: dict[str, Node] | None = None,
) -> list[Point]:
    """Points along *edge* in the figure's local frame, from -> to."""

    lookup = nodes if nodes is not None else figure.node_map()
    start = lookup.get(edge.from_node)
    end = lookup.get(edge.to_node)
    if start is None or end is None:
        return []
    if edge.kind is EdgeKind.LINE:
        return [start.position, end.position]
    return sample_cubic(*edge_control_points(edge, start, end), steps)


def _valid_edges(figure: Figure, nodes: dict[str, Node]) -> list[Edge]:
    return [edge for edge in figure.edges if edge.from_node in nodes and edge.to_node in nodes]


def _extend(points: list[Point], segment: Sequence[Point]) -> None:
    for point in segment:
        if points and distance(points[-1], point) <= _SAME_POINT:
            continue
        points.append(point)


def _drop_closing_point(points: list[Point]) -> list[Point]:
    if len(points) > 1 and distance(points[0], points[-1]) <= _SAME_POINT:
        return points[:-1]
    return points


def traversal_points(
    figure: Figure,
    traversals: Sequence[Traversal],
    steps: int = DEFAULT_STEPS,
    *,
    nodes: dict[str, Node] | None = None,
) -> list[Point]:
    """Concatenate oriented edge samples without duplicating shared vertices."""

    lookup = nodes if nodes is not None else figure.node_map()
    points: list[Point] = []
    for edge, forward in traversals:
        segment = edge_local_points(figure, edge, steps, nodes=lookup)
        if not forward:
            segment = segment[::-1]
        _extend(points, segment)
    return points


def _simple_chain(figure: Figure, nodes: dict[str, Node], edges: list[Edge]) -> list[Traversal] | None:
    incident: dict[str, list[Edge]] = {}
    for edge in edges:
        incident.setdefault(edge.from_node, []).append(edge)
        if edge.to_node != edge.from_node:
            incident.setdefault(edge.to_node, []).append(edge)
    if any(len(items) > 2 for items in incident.values()):
        return None

    ends = [node_id for node_id, items in incident.items() if len(items) == 1]
    ends.sort(key=lambda node_id: incident[node_id][0].from_node != node_id)
    start = ends[0] if ends else edges[0].from_node
    used: set[str] = set()
    order: list[Traversal] = []
    current = start
    for _ in range(len(edges)):
        candidates = [edge for edge in incident.get(current, []) if edge.id not in used]
        if not candidates:
            break
        # Prefer the edge's own direction so drawn winding survives.
        candidates.sort(key=lambda edge: edge.from_node != current)
        edge = candidates[0]
        forward = edge.from_node == current
        used.add(edge.id)
        order.append((edge, forward))
        current = edge.to_node if forward else edge.from_node
    if len(used) != len(edges):
        return None
    return order


def simple_chain(figure: Figure) -> list[Traversal] | None:
    """Edge order of a figure whose nodes all have degree two or less."""

    nodes = figure.node_map()
    edges = _valid_edges(figure, nodes)
    if not edges:
        return None
    return _simple_chain(figure, nodes, edges)


def _departure(figure: Figure, edge: Edge, forward: bool, nodes: dict[str, Node]) -> Point:
    segment = edge_local_points(figure, edge, 8, nodes=nodes)
    if not forward:
        segment = segment[::-1]
    origin = segment[0]
    for point in segment[1:]:
        if distance(origin, point) > _SAME_POINT:
            return normalize(sub(point, origin))
    return (0.0, 0.0)


def _arrival(figure: Figure, edge: Edge, forward: bool, nodes: dict[str, Node]) -> Point:
    segment = edge_local_points(figure, edge, 8, nodes=nodes)
    if not forward:
        segment = segment[::-1]
    target = segment[-1]
    for point in reversed(segment[:-1]):
        if distance(point, target) > _SAME_POINT:
            return normalize(sub(target, point))
    return (0.0, 0.0)


def boundary_walk_loop(figure: Figure) -> list[Traversal] | None:
    """Walk the outer boundary of a fused contour by always turning left on screen.

    Starts at the top-most (then left-most) node of degree two or more on its
    most rightward edge. Returns the ordered traversals, or ``None`` when the
    walk does not close within three passes over the edges.
    """

    nodes = figure.node_map()
    edges = _valid_edges(figure, nodes)
    if len(edges) < 2:
        return None

    incident: dict[str, list[Traversal]] = {}
    for edge in edges:
        incident.setdefault(edge.from_node, []).append((edge, True))
        incident.setdefault(edge.to_node, []).append((edge, False))

    starts = [nodes[node_id] for node_id, items in incident.items() if len(items) >= 2]
    if not starts:
        return None
    start = min(starts, key=lambda node: (node.y, node.x))

    first = max(incident[start.id], key=lambda item: _departure(figure, item[0], item[1], nodes)[0])
    order: list[Traversal] = [first]
    edge, forward = first
    current = edge.to_node if forward else edge.from_node
    limit = len(edges) * 3

    for _ in range(limit):
        if current == start.id:
            break
        incoming = _arrival(figure, edge, forward, nodes)
        best: tuple[float, Traversal] | None = None
        for candidate in incident.get(current, []):
            if candidate[0].id == edge.id:
                continue
            turn = screen_ccw_turn(incoming, _departure(figure, candidate[0], candidate[1], nodes))
            if abs(abs(turn) - math.pi) <= _UTURN_TOLERANCE:
                turn = -4.0
            if best is None or turn > best[0]:
                best = (turn, candidate)
        if best is None:
            # Dead end: the only way on is back along the same edge.
            best = (-5.0, (edge, not forward))
        edge, forward = best[1]
        order.append(best[1])
        current = edge.to_node if forward else edge.from_node

    if current != start.id:
        logger.debug("Boundary walk on %s did not close within %d steps", figure.id, limit)
        return None
    return order


def boundary_walk(figure: Figure, steps: int = DEFAULT_STEPS) -> list[Point] | None:
    order = boundary_walk_loop(figure)
    if order is None:
        return None
    points = _drop_closing_point(traversal_points(figure, order, steps))
    if len(points) < 3:
        return None
    return points


def _directed_traversal(figure: Figure, nodes: dict[str, Node], edges: list[Edge], steps: int) -> list[Point]:
    outgoing: dict[str, list[Edge]] = {}
    incoming_count: dict[str, int] = {}
    for edge in edges:
        outgoing.setdefault(edge.from_node, []).append(edge)
        incoming_count[edge.to_node] = incoming_count.get(edge.to_node, 0) + 1
    sources = [edge.from_node for edge in edges if incoming_count.get(edge.from_node, 0) == 0]
    current = sources[0] if sources else edges[0].from_node
    used: set[str] = set()
    order: list[Traversal] = []
    for _ in range(len(edges)):
        nxt = next((edge for edge in outgoing.get(current, []) if edge.id not in used), None)
        if nxt is None:
            break
        used.add(nxt.id)
        order.append((nxt, True))
        current = nxt.to_node
    return traversal_points(figure, order, steps, nodes=nodes)


def _naive(figure: Figure, nodes: dict[str, Node], edges: list[Edge], steps: int) -> list[Point]:
    return traversal_points(figure, [(edge, True) for edge in edges], steps, nodes=nodes)


def figure_local_polyline(figure: Figure, steps: int = DEFAULT_STEPS) -> list[Point]:
    """Ordered local-frame polyline; closed figures omit the repeated start."""

    nodes = figure.node_map()
    edges = _valid_edges(figure, nodes)
    if not edges:
        return []

    chain = _simple_chain(figure, nodes, edges)
    if chain is not None:
        points = traversal_points(figure, chain, steps, nodes=nodes)
        return _drop_closing_point(points) if figure.closed else points

    walked = boundary_walk(figure, steps)
    if walked is not None:
        return walked

    directed = _directed_traversal(figure, nodes, edges, steps)
    if figure.closed:
        directed = _drop_closing_point(directed)
    if len(directed) >= 3:
        return directed

    naive = _naive(figure, nodes, edges, steps)
    return _drop_closing_point(naive) if figure.closed else naive


def figure_local_to_world(figure: Figure, point: Point) -> Point:
    return add(rotate(point, figure.rotation), (figure.x, figure.y))


def world_to_figure_local(figure: Figure, point: Point) -> Point:
    return rotate_inv(sub(point, (figure.x, figure.y)), figure.rotation)


def figure_world_polyline(figure: Figure, steps: int = DEFAULT_STEPS) -> list[Point]:
    return [figure_local_to_world(figure, point) for point in figure_local_polyline(figure, steps)]


def figure_flat_points(figure: Figure, steps: int = DEFAULT_STEPS, *, world: bool = True) -> list[float]:
    """Flat ``[x0, y0, ...]`` array of the figure polyline."""

    points = figure_world_polyline(figure, steps) if world else figure_local_polyline(figure, steps)
    return flatten_points(points)


__all__ = [
    "DEFAULT_STEPS",
    "Traversal",
    "boundary_walk",
    "boundary_walk_loop",
    "edge_control_points",
    "edge_local_points",
    "figure_flat_points",
    "figure_local_polyline",
    "figure_local_to_world",
    "figure_world_polyline",
    "simple_chain",
    "traversal_points",
    "world_to_figure_local",
]
