"""Parallel offsets of closed contours (seam allowance).

Polygon offsets work on corner vertices: convex corners meet at the miter
intersection of the two offset lines, concave corners either use the point
where the offset segments cross or keep both cut endpoints. Whatever
self-intersections survive are split off and the loop keeping the original
winding and the larger area is retained.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from .figure import EdgeKind, Figure, FigureKind
from .figure_path import edge_local_points, figure_local_polyline
from .outer_loop import extract_outer_loop, loop_corner_points
from .settings import DEFAULT_SETTINGS, EngineSettings
from .vectors import (
    Point,
    add,
    cross,
    distance,
    dot,
    line_intersection,
    normalize,
    scale,
    segment_intersection,
    signed_area,
    sub,
)

logger = logging.getLogger(__name__)

CORNER_TOLERANCE = 1e-6
MERGE_DISTANCE = 0.1
CROSSING_MARGIN = 1e-3


@dataclass(frozen=True, slots=True)
class SelfIntersection:
    edge_i: int
    edge_j: int
    point: Point
    t: float
    u: float


@dataclass(frozen=True, slots=True)
class OffsetSegment:
    """An offset outer-loop edge, oriented along the loop."""

    edge_id: str
    points: tuple[Point, ...]


def _dedupe(points: Sequence[Point]) -> list[Point]:
    cleaned: list[Point] = []
    for point in points:
        if cleaned and distance(cleaned[-1], point) <= 1e-9:
            continue
        cleaned.append((float(point[0]), float(point[1])))
    while len(cleaned) > 1 and distance(cleaned[0], cleaned[-1]) <= 1e-9:
        cleaned.pop()
    return cleaned


def _projection(point: Point, start: Point, end: Point) -> float:
    span = sub(end, start)
    length_sq = dot(span, span)
    if length_sq <= 1e-3:
        return 0.0
    return dot(sub(point, start), span) / length_sq


def offset_polygon(points: Sequence[Point], offset: float) -> list[Point] | None:
    """Offset a closed polygon outward by *offset* (negative offsets shrink it).

    Positive signed area (clockwise on a Y-down canvas) takes the right-hand
    normal as outward, negative area the left-hand one. Returns ``None`` when
    the polygon or the result has fewer than three vertices.
    """

    poly = _dedupe(points)
    if len(poly) < 3:
        return None
    area = signed_area(poly)
    if math.isclose(area, 0.0, abs_tol=1e-9):
        return None
    if offset == 0.0:
        return poly

    outward_sign = 1.0 if area > 0.0 else -1.0
    grow_sign = 1.0 if offset > 0.0 else -1.0
    count = len(poly)

    directions: list[Point] = []
    normals: list[Point] = []
    for index in range(count):
        direction = normalize(sub(poly[(index + 1) % count], poly[index]))
        directions.append(direction)
        normals.append((direction[1] * outward_sign, -direction[0] * outward_sign))

    result: list[Point] = []
    for index in range(count):
        prev_index = index - 1
        vertex = poly[index]
        prev_normal = scale(normals[prev_index], offset)
        curr_normal = scale(normals[index], offset)

        prev_start = add(poly[prev_index], prev_normal)
        prev_end = add(vertex, prev_normal)
        curr_start = add(vertex, curr_normal)
        curr_end = add(poly[(index + 1) % count], curr_normal)

        turn = cross(directions[prev_index], directions[index])
        if turn * outward_sign * grow_sign > CORNER_TOLERANCE:
            miter = line_intersection(prev_start, sub(prev_end, prev_start), curr_start, sub(curr_end, curr_start))
            result.append(miter if miter is not None else prev_end)
            continue

        crossing = line_intersection(prev_start, sub(prev_end, prev_start), curr_start, sub(curr_end, curr_start))
        if crossing is not None:
            t_prev = _projection(crossing, prev_start, prev_end)
            t_curr = _projection(crossing, curr_start, curr_end)
            inside = CORNER_TOLERANCE < t_prev < 1.0 - CORNER_TOLERANCE and CORNER_TOLERANCE < t_curr < 1.0 - CORNER_TOLERANCE
            if inside:
                result.append(crossing)
                continue
        result.append(prev_end)
        if distance(prev_end, curr_start) > MERGE_DISTANCE:
            result.append(curr_start)

    if len(result) < 3:
        return None
    resolved = resolve_self_intersections(result)
    if len(resolved) < 3:
        return None
    if len(resolved) != len(result):
        logger.debug("Offset cleanup removed %d vertices", len(result) - len(resolved))
    return resolved


def find_self_intersections(points: Sequence[Point]) -> list[SelfIntersection]:
    """Pairwise crossings between non-adjacent edges of a closed polygon."""

    count = len(points)
    found: list[SelfIntersection] = []
    if count < 4:
        return found
    for i in range(count):
        a0 = points[i]
        a1 = points[(i + 1) % count]
        for j in range(i + 2, count):
            if (j + 1) % count == i:
                continue
            hit = segment_intersection(a0, a1, points[j], points[(j + 1) % count])
            if hit is None:
                continue
            point, t, u = hit
            if CROSSING_MARGIN < t < 1.0 - CROSSING_MARGIN and CROSSING_MARGIN < u < 1.0 - CROSSING_MARGIN:
                found.append(SelfIntersection(edge_i=i, edge_j=j, point=point, t=t, u=u))
    return found


def _loop_rank(loop: Sequence[Point], winding: float) -> tuple[bool, float]:
    area = signed_area(loop)
    return (math.copysign(1.0, area) == winding and abs(area) > 1e-9, abs(area))


def resolve_self_intersections(points: Sequence[Point]) -> list[Point]:
    """Split at crossings until none remain, keeping the dominant loop.

    At each crossing the polygon divides into two loops. The one whose winding
    matches the input wins, ties going to the larger enclosed area; small
    reversed "bowtie" loops are therefore discarded.
    """

    poly = list(points)
    original_sign = math.copysign(1.0, signed_area(poly))
    for _ in range(2 * len(poly)):
        crossings = find_self_intersections(poly)
        if not crossings:
            break
        hit = crossings[0]
        i, j = hit.edge_i, hit.edge_j
        inner = [hit.point] + poly[i + 1 : j + 1]
        outer = [hit.point] + poly[j + 1 :] + poly[: i + 1]
        chosen = max((inner, outer), key=lambda loop: _loop_rank(loop, original_sign))
        if len(chosen) < 3:
            break
        poly = _dedupe(chosen)
    return poly


def offset_polyline(points: Sequence[Point], outward_sign: float, offset: float) -> list[Point]:
    """Offset an open polyline along averaged vertex normals."""

    if len(points) < 2:
        return []
    segment_normals: list[Point] = []
    for a, b in zip(points, points[1:]):
        direction = normalize(sub(b, a))
        segment_normals.append(scale((direction[1], -direction[0]), outward_sign))

    last = len(points) - 1
    shifted: list[Point] = []
    for index, point in enumerate(points):
        if index == 0:
            normal = segment_normals[0]
        elif index == last:
            normal = segment_normals[-1]
        else:
            normal = normalize(add(segment_normals[index - 1], segment_normals[index]))
        shifted.append(add(point, scale(normal, offset)))
    return shifted


def offset_figure_uniform(
    figure: Figure,
    offset: float,
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[Point] | None:
    """Offset the outer loop of *figure* in its local frame."""

    if not figure.edges:
        return None

    if figure.kind is FigureKind.CIRCLE:
        polygon = figure_local_polyline(figure, settings.circle_offset_steps)
        logger.debug("Offsetting circle %s through a %d-point polygon", figure.id, len(polygon))
        return offset_polygon(polygon, offset)

    loop = extract_outer_loop(figure)
    if loop is None:
        return None

    if loop.has_curves:
        dense = extract_outer_loop(figure, settings.curve_offset_steps)
        if dense is not None:
            return offset_polygon(dense.points, offset)

    vertices = loop_corner_points(figure, loop)
    if len(vertices) < 3:
        return offset_polygon(loop.points, offset)
    return offset_polygon(vertices, offset)


def offset_figure_per_edge(
    figure: Figure,
    offsets: Mapping[str, float],
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[OffsetSegment] | None:
    """Offset each outer-loop edge by its own distance.

    Edges with a missing, non-finite or non-positive offset are skipped.
    Segments adjacent on the loop are stitched where their end tangents meet.
    """

    if not figure.edges:
        return None
    loop = extract_outer_loop(figure)
    if loop is None:
        return None

    outward_sign = 1.0 if loop.area > 0.0 else -1.0
    nodes = figure.node_map()
    edges = figure.edge_map()
    loop_count = len(loop.edges)

    ordered: list[tuple[int, str, list[Point]]] = []
    for index, (edge_id, forward) in enumerate(loop.edges):
        amount = offsets.get(edge_id)
        if amount is None or not math.isfinite(amount) or amount <= 0.0:
            continue
        edge = edges[edge_id]
        steps = 1 if edge.kind is EdgeKind.LINE else settings.per_edge_curve_steps
        points = edge_local_points(figure, edge, steps, nodes=nodes)
        if len(points) < 2:
            continue
        if not forward:
            points = points[::-1]
        shifted = offset_polyline(points, outward_sign, float(amount))
        if len(shifted) >= 2:
            ordered.append((index, edge_id, shifted))

    if not ordered:
        return None

    for position, (loop_index, _, current) in enumerate(ordered):
        next_position = (position + 1) % len(ordered)
        if next_position == position:
            continue
        next_index, _, following = ordered[next_position]
        if (loop_index + 1) % loop_count != next_index:
            continue
        end = current[-1]
        before_end = current[-2]
        start = following[0]
        after_start = following[1]
        joint = line_intersection(before_end, sub(end, before_end), start, sub(after_start, start))
        if joint is not None:
            current[-1] = joint
            following[0] = joint

    return [OffsetSegment(edge_id=edge_id, points=tuple(points)) for _, edge_id, points in ordered]


__all__ = [
    "OffsetSegment",
    "SelfIntersection",
    "find_self_intersections",
    "offset_figure_per_edge",
    "offset_figure_uniform",
    "offset_polygon",
    "offset_polyline",
    "resolve_self_intersections",
]
