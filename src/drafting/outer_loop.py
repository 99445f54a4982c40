"""Outer loop extraction for possibly fused or overlapping contours.

The edge graph is normalised before tracing: coincident nodes are welded,
line edges running through other vertices are split there, and duplicated
strokes between the same two positions collapse to the longest one. Graphs
that still branch (or had duplicates) are resolved by half-edge face tracing;
plain cycles go through the angle-turn walk. In both cases the loop with the
largest absolute signed area wins.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from .figure import Edge, EdgeKind, Figure, Node
from .figure_path import DEFAULT_STEPS, edge_local_points, figure_local_polyline
from .vectors import (
    Point,
    cross,
    distance,
    normalize,
    point_segment_distance,
    polyline_length,
    screen_ccw_turn,
    signed_area,
    sub,
)

logger = logging.getLogger(__name__)

POSITION_PRECISION = 3
COLLINEAR_TOLERANCE = 1e-6
MIN_LOOP_AREA = 1e-9


@dataclass(frozen=True, slots=True)
class OuterLoop:
    """The outer contour of a figure in its local frame.

    ``node_ids`` lists the loop vertices in walk order and ``edges`` the source
    edges with the direction they are walked in (``True`` = from -> to).
    ``points`` is the sampled polygon without a repeated closing point.
    """

    node_ids: tuple[str, ...]
    edges: tuple[tuple[str, bool], ...]
    points: tuple[Point, ...]
    area: float
    has_curves: bool = False

    @property
    def edge_ids(self) -> tuple[str, ...]:
        return tuple(edge_id for edge_id, _ in self.edges)


@dataclass(frozen=True, slots=True)
class _GraphEdge:
    source: Edge
    a: str
    b: str
    points: tuple[Point, ...]


@dataclass(slots=True)
class _Graph:
    positions: dict[str, Point]
    edges: list[_GraphEdge]
    had_duplicates: bool

    def degree(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for edge in self.edges:
            counts[edge.a] = counts.get(edge.a, 0) + 1
            counts[edge.b] = counts.get(edge.b, 0) + 1
        return counts


def _position_key(point: Point) -> tuple[float, float]:
    return (round(point[0], POSITION_PRECISION), round(point[1], POSITION_PRECISION))


def _weld(nodes: Sequence[Node]) -> tuple[dict[str, str], dict[str, Point]]:
    by_key: dict[tuple[float, float], str] = {}
    canonical: dict[str, str] = {}
    positions: dict[str, Point] = {}
    for node in nodes:
        key = _position_key(node.position)
        keeper = by_key.setdefault(key, node.id)
        canonical[node.id] = keeper
        positions.setdefault(keeper, node.position)
    return canonical, positions


def _split_collinear(edge: _GraphEdge, positions: dict[str, Point]) -> list[_GraphEdge]:
    if edge.source.kind is not EdgeKind.LINE:
        return [edge]
    start = positions[edge.a]
    end = positions[edge.b]
    hits: list[tuple[float, str]] = []
    for vertex_id, point in positions.items():
        if vertex_id in (edge.a, edge.b):
            continue
        gap, t = point_segment_distance(point, start, end)
        if gap < COLLINEAR_TOLERANCE and COLLINEAR_TOLERANCE < t < 1.0 - COLLINEAR_TOLERANCE:
            hits.append((t, vertex_id))
    if not hits:
        return [edge]
    hits.sort()
    chain = [edge.a] + [vertex_id for _, vertex_id in hits] + [edge.b]
    return [
        _GraphEdge(
            source=edge.source,
            a=a,
            b=b,
            points=(positions[a], positions[b]),
        )
        for a, b in zip(chain, chain[1:])
    ]


def _build_graph(figure: Figure, steps: int) -> _Graph | None:
    nodes = figure.node_map()
    if not nodes:
        return None
    canonical, positions = _weld(figure.nodes)

    raw: list[_GraphEdge] = []
    for edge in figure.edges:
        if edge.from_node not in nodes or edge.to_node not in nodes:
            logger.warning("Edge %s on figure %s references a missing node; skipped", edge.id, figure.id)
            continue
        a = canonical[edge.from_node]
        b = canonical[edge.to_node]
        if a == b:
            continue
        points = tuple(edge_local_points(figure, edge, steps, nodes=nodes))
        raw.append(_GraphEdge(source=edge, a=a, b=b, points=points))

    split: list[_GraphEdge] = []
    for edge in raw:
        split.extend(_split_collinear(edge, positions))

    kept: dict[frozenset[str], _GraphEdge] = {}
    had_duplicates = False
    for edge in split:
        key = frozenset((edge.a, edge.b))
        existing = kept.get(key)
        if existing is None:
            kept[key] = edge
            continue
        had_duplicates = True
        if polyline_length(edge.points) > polyline_length(existing.points):
            kept[key] = edge

    if not kept:
        return None
    return _Graph(positions=positions, edges=list(kept.values()), had_duplicates=had_duplicates)


# A graph edge walked in one direction: (index into graph.edges, a -> b?).
_HalfEdge = tuple[int, bool]


def _half_points(graph: _Graph, half: _HalfEdge) -> tuple[Point, ...]:
    edge = graph.edges[half[0]]
    return edge.points if half[1] else edge.points[::-1]


def _half_origin(graph: _Graph, half: _HalfEdge) -> str:
    edge = graph.edges[half[0]]
    return edge.a if half[1] else edge.b


def _half_target(graph: _Graph, half: _HalfEdge) -> str:
    edge = graph.edges[half[0]]
    return edge.b if half[1] else edge.a


def _departure(points: Sequence[Point]) -> Point:
    for point in points[1:]:
        if distance(points[0], point) > 1e-9:
            return normalize(sub(point, points[0]))
    return (0.0, 0.0)


def _arrival(points: Sequence[Point]) -> Point:
    return _departure(points[::-1])


def _polar_angle(direction: Point) -> float:
    return math.atan2(direction[1], direction[0])


def _loop_from_halves(graph: _Graph, halves: Sequence[_HalfEdge]) -> OuterLoop | None:
    points: list[Point] = []
    for half in halves:
        for point in _half_points(graph, half):
            if points and distance(points[-1], point) <= 1e-9:
                continue
            points.append(point)
    if len(points) > 1 and distance(points[0], points[-1]) <= 1e-9:
        points.pop()
    if len(points) < 3:
        return None
    area = signed_area(points)
    if abs(area) <= MIN_LOOP_AREA:
        return None

    edges: list[tuple[str, bool]] = []
    for index, half in enumerate(halves):
        graph_edge = graph.edges[half[0]]
        entry = (graph_edge.source.id, half[1])
        # Split sub-edges of one source edge collapse back into one entry.
        if edges and edges[-1] == entry:
            continue
        if index == len(halves) - 1 and edges and edges[0] == entry and len(edges) > 1:
            continue
        edges.append(entry)

    return OuterLoop(
        node_ids=tuple(_half_origin(graph, half) for half in halves),
        edges=tuple(edges),
        points=tuple(points),
        area=area,
        has_curves=any(graph.edges[half[0]].source.kind is EdgeKind.CUBIC for half in halves),
    )


def _trace_faces(graph: _Graph) -> list[OuterLoop]:
    outgoing: dict[str, list[_HalfEdge]] = {}
    for index, edge in enumerate(graph.edges):
        outgoing.setdefault(edge.a, []).append((index, True))
        outgoing.setdefault(edge.b, []).append((index, False))
    for halves in outgoing.values():
        halves.sort(key=lambda half: _polar_angle(_departure(_half_points(graph, half))))

    total = len(graph.edges) * 2
    limit = total * 3
    visited: set[_HalfEdge] = set()
    loops: list[OuterLoop] = []
    steps_taken = 0
    for vertex_halves in list(outgoing.values()):
        for start in vertex_halves:
            if start in visited:
                continue
            face: list[_HalfEdge] = []
            half = start
            while half not in visited:
                steps_taken += 1
                if steps_taken > limit:
                    logger.debug("Face tracing hit its safety ceiling of %d steps", limit)
                    return loops
                visited.add(half)
                face.append(half)
                target = _half_target(graph, half)
                ring = outgoing[target]
                back = (half[0], not half[1])
                position = ring.index(back)
                half = ring[(position - 1) % len(ring)]
            if half != start:
                continue
            loop = _loop_from_halves(graph, face)
            if loop is not None:
                loops.append(loop)
    return loops


def _angle_walk(graph: _Graph, prefer_left: bool) -> OuterLoop | None:
    incident: dict[str, list[_HalfEdge]] = {}
    for index, edge in enumerate(graph.edges):
        incident.setdefault(edge.a, []).append((index, True))
        incident.setdefault(edge.b, []).append((index, False))
    degrees = graph.degree()
    candidates = [vertex for vertex, count in degrees.items() if count >= 2]
    if not candidates:
        return None
    start = min(candidates, key=lambda vertex: (graph.positions[vertex][1], graph.positions[vertex][0]))

    half = max(incident[start], key=lambda item: _departure(_half_points(graph, item))[0])
    halves = [half]
    current = _half_target(graph, half)
    limit = len(graph.edges) * 3
    for _ in range(limit):
        if current == start:
            break
        incoming = _arrival(_half_points(graph, half))
        best: tuple[float, _HalfEdge] | None = None
        for option in incident.get(current, []):
            if option[0] == half[0]:
                continue
            turn = screen_ccw_turn(incoming, _departure(_half_points(graph, option)))
            if not prefer_left:
                turn = -turn
            if abs(abs(turn) - math.pi) <= COLLINEAR_TOLERANCE:
                turn = -4.0
            if best is None or turn > best[0]:
                best = (turn, option)
        if best is None:
            return None
        half = best[1]
        halves.append(half)
        current = _half_target(graph, half)
    if current != start:
        return None
    return _loop_from_halves(graph, halves)


def _naive_loops(graph: _Graph) -> list[OuterLoop]:
    incident: dict[str, list[_HalfEdge]] = {}
    for index, edge in enumerate(graph.edges):
        incident.setdefault(edge.a, []).append((index, True))
        incident.setdefault(edge.b, []).append((index, False))
    used: set[int] = set()
    loops: list[OuterLoop] = []
    budget = len(graph.edges) * 2
    for index in range(len(graph.edges)):
        if index in used:
            continue
        start_vertex = graph.edges[index].a
        halves: list[_HalfEdge] = [(index, True)]
        used.add(index)
        current = graph.edges[index].b
        while current != start_vertex and budget > 0:
            budget -= 1
            nxt = next((item for item in incident.get(current, []) if item[0] not in used), None)
            if nxt is None:
                break
            used.add(nxt[0])
            halves.append(nxt)
            current = _half_target(graph, nxt)
        if current == start_vertex:
            loop = _loop_from_halves(graph, halves)
            if loop is not None:
                loops.append(loop)
    return loops


def _largest(loops: Sequence[OuterLoop | None]) -> OuterLoop | None:
    present = [loop for loop in loops if loop is not None]
    if not present:
        return None
    return max(present, key=lambda loop: abs(loop.area))


def extract_outer_loop(figure: Figure, steps: int = DEFAULT_STEPS) -> OuterLoop | None:
    """Return the loop enclosing the largest area, or ``None`` when there is none."""

    graph = _build_graph(figure, steps)
    if graph is None:
        return None

    branching = any(count > 2 for count in graph.degree().values())
    if graph.had_duplicates or branching:
        loop = _largest(_trace_faces(graph))
        if loop is not None:
            return loop
        logger.debug("Face tracing found no closed face on %s; trying the angle walk", figure.id)

    loop = _largest([_angle_walk(graph, prefer_left=True), _angle_walk(graph, prefer_left=False)])
    if loop is not None:
        return loop
    return _largest(_naive_loops(graph))


def has_closed_loop(figure: Figure) -> bool:
    return extract_outer_loop(figure) is not None


def outer_loop_edge_sequence(figure: Figure) -> list[str]:
    """Edge ids in loop order; figures without a loop keep their edge order."""

    loop = extract_outer_loop(figure)
    if loop is None:
        return [edge.id for edge in figure.edges]
    return list(loop.edge_ids)


def outer_loop_edge_ids(figure: Figure) -> frozenset[str]:
    return frozenset(outer_loop_edge_sequence(figure))


def outer_loop_edge_directions(figure: Figure) -> dict[str, tuple[str, str]]:
    """Map each loop edge id to the ``(from, to)`` node ids it is walked along."""

    loop = extract_outer_loop(figure)
    if loop is None:
        return {}
    edges = figure.edge_map()
    directions: dict[str, tuple[str, str]] = {}
    for edge_id, forward in loop.edges:
        edge = edges[edge_id]
        directions[edge_id] = (edge.from_node, edge.to_node) if forward else (edge.to_node, edge.from_node)
    return directions


def outer_loop_polygon(figure: Figure, steps: int = DEFAULT_STEPS) -> list[Point]:
    """Sampled outer loop; falls back to the plain figure polyline."""

    loop = extract_outer_loop(figure, steps)
    if loop is not None:
        return list(loop.points)
    return figure_local_polyline(figure, steps)


def simplify_collinear_vertices(points: Sequence[Point]) -> list[Point]:
    """Drop duplicate, collinear and straight-line U-turn vertices."""

    if len(points) < 3:
        return list(points)
    count = len(points)
    result: list[Point] = []
    for index in range(count):
        prev = points[index - 1]
        curr = points[index]
        nxt = points[(index + 1) % count]
        if distance(prev, curr) < COLLINEAR_TOLERANCE or distance(curr, nxt) < COLLINEAR_TOLERANCE:
            continue
        v1 = sub(curr, prev)
        v2 = sub(nxt, curr)
        if abs(cross(v1, v2)) < COLLINEAR_TOLERANCE:
            # Straight through or a spike folding back on itself.
            continue
        result.append(curr)
    return result if len(result) >= 3 else list(points)


def outer_loop_vertices(figure: Figure) -> list[Point]:
    """Corner positions of the outer loop, without interpolated curve samples."""

    return loop_corner_points(figure, extract_outer_loop(figure))


def loop_corner_points(figure: Figure, loop: OuterLoop | None) -> list[Point]:
    if loop is None:
        degree: dict[str, int] = {}
        for edge in figure.edges:
            degree[edge.from_node] = degree.get(edge.from_node, 0) + 1
            degree[edge.to_node] = degree.get(edge.to_node, 0) + 1
        fallback = [node.position for node in figure.nodes if degree.get(node.id, 0) >= 2]
        return simplify_collinear_vertices(fallback)
    nodes = figure.node_map()
    vertices = [nodes[node_id].position for node_id in loop.node_ids if node_id in nodes]
    return simplify_collinear_vertices(vertices)


__all__ = [
    "OuterLoop",
    "extract_outer_loop",
    "has_closed_loop",
    "loop_corner_points",
    "outer_loop_edge_directions",
    "outer_loop_edge_ids",
    "outer_loop_edge_sequence",
    "outer_loop_polygon",
    "outer_loop_vertices",
    "simplify_collinear_vertices",
]
