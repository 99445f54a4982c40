"""Triangular darts inserted along a figure's base contour.

Dart geometry is always rebuilt from a canonical base contour rather than the
current (already darted) one, so repeated edits never compound. For closed
figures the base polygon comes from, in order of preference: explicit
``base_points``, the primitive ``shape`` parameters, the ``dart_snapshot``
captured when the first dart was inserted, or the current outer loop. Open
line and curve figures use their sampled chain instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

from .figure import (
    Dart,
    DartLink,
    DartSymmetry,
    Edge,
    Figure,
    FigureKind,
    Node,
    new_id,
)
from .figure_path import figure_local_polyline, simple_chain
from .outer_loop import extract_outer_loop, loop_corner_points
from .settings import DEFAULT_SETTINGS, EngineSettings
from .styled_curves import break_style_link
from .vectors import (
    Point,
    add,
    distance,
    lerp,
    normalize,
    perp,
    point_in_polygon,
    point_segment_distance,
    scale,
    sub,
)

logger = logging.getLogger(__name__)

_SAME_POINT = 1e-6
_OPEN_KINDS = (FigureKind.LINE, FigureKind.CURVE)

Segment = tuple[int, Point, Point, float]


@dataclass(frozen=True, slots=True)
class AnchorResolution:
    segment_index: int
    point: Point
    arclength: float
    perimeter: float


@dataclass(frozen=True, slots=True)
class DartGeometry:
    """Resolved dart points plus where its base points sit along the contour."""

    dart_id: str
    segment_index: int
    arclength: float
    left: Point
    apex: Point
    right: Point
    left_arclength: float
    right_arclength: float


def _rect_polygon(width: float, height: float) -> list[Point]:
    return [(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)]


def _circle_polygon(radius: float, samples: int) -> list[Point]:
    angles = np.linspace(0.0, 2.0 * np.pi, max(8, int(samples)), endpoint=False)
    return [(float(radius * np.cos(a)), float(radius * np.sin(a))) for a in angles]


def is_open_chain(figure: Figure) -> bool:
    return not figure.closed and figure.kind in _OPEN_KINDS


def base_polygon(figure: Figure, *, settings: EngineSettings = DEFAULT_SETTINGS) -> list[Point] | None:
    """The pristine closed contour darts are placed on, or ``None`` if there is none."""

    if is_open_chain(figure):
        return None
    if figure.base_points is not None and len(figure.base_points) >= 3:
        return list(figure.base_points)

    shape = figure.shape
    if shape is not None:
        if figure.kind is FigureKind.RECT and shape.width and shape.height:
            return _rect_polygon(shape.width, shape.height)
        if figure.kind is FigureKind.CIRCLE and shape.radius:
            return _circle_polygon(shape.radius, settings.circle_base_samples)

    if figure.dart_snapshot is not None and len(figure.dart_snapshot) >= 3:
        return list(figure.dart_snapshot)

    loop = extract_outer_loop(figure, settings.path_steps)
    if loop is None:
        return None
    if loop.has_curves:
        return list(loop.points)
    corners = loop_corner_points(figure, loop)
    return corners if len(corners) >= 3 else None


def base_chain(figure: Figure, *, settings: EngineSettings = DEFAULT_SETTINGS) -> list[Point] | None:
    """The pristine open polyline of a line or curve figure, or ``None``.

    Curved edges are sampled with ``settings.path_steps``; the darted result is
    a chain of straight edges.
    """

    if not is_open_chain(figure):
        return None
    for stored in (figure.base_points, figure.dart_snapshot):
        if stored is not None and len(stored) >= 2:
            return list(stored)
    if simple_chain(figure) is None:
        return None
    points = figure_local_polyline(figure, settings.path_steps)
    return points if len(points) >= 2 else None


def _base_contour(figure: Figure, settings: EngineSettings) -> tuple[list[Point], bool] | None:
    if not figure.edges:
        return None
    if is_open_chain(figure):
        chain = base_chain(figure, settings=settings)
        return (chain, False) if chain is not None else None
    polygon = base_polygon(figure, settings=settings)
    return (polygon, True) if polygon is not None else None


def _segments(polygon: Sequence[Point], *, closed: bool = True) -> list[Segment]:
    count = len(polygon)
    segments = []
    for index in range(count if closed else count - 1):
        start = polygon[index]
        end = polygon[(index + 1) % count]
        length = distance(start, end)
        if length > 1e-9:
            segments.append((index, start, end, length))
    return segments


def _point_at(segments: Sequence[Segment], arclength: float) -> Point:
    travelled = 0.0
    for _, start, end, length in segments:
        if travelled + length >= arclength - 1e-9:
            return lerp(start, end, min(max((arclength - travelled) / length, 0.0), 1.0))
        travelled += length
    return segments[-1][2]


def resolve_anchor(polygon: Sequence[Point], dart: Dart, *, closed: bool = True) -> AnchorResolution | None:
    """Locate *dart* on *polygon*.

    Follow-mode darts walk the contour to ``position`` (a fraction of the
    total length); frozen darts project their stored point onto the nearest
    segment. Open chains are walked from their first point without wrapping.
    """

    if len(polygon) < (3 if closed else 2):
        return None
    segments = _segments(polygon, closed=closed)
    perimeter = sum(item[3] for item in segments)
    if perimeter <= 1e-9:
        return None

    if dart.link is DartLink.FROZEN and dart.point is not None:
        best: tuple[float, AnchorResolution] | None = None
        travelled = 0.0
        for index, start, end, length in segments:
            gap, t = point_segment_distance(dart.point, start, end)
            if best is None or gap < best[0]:
                best = (gap, AnchorResolution(index, lerp(start, end, t), travelled + t * length, perimeter))
            travelled += length
        return best[1] if best is not None else None

    target = min(max(dart.position, 0.0), 1.0) * perimeter
    travelled = 0.0
    for index, start, end, length in segments:
        if travelled + length >= target - 1e-9:
            t = min(max((target - travelled) / length, 0.0), 1.0)
            return AnchorResolution(index, lerp(start, end, t), target, perimeter)
        travelled += length
    index, start, end, _ = segments[-1]
    return AnchorResolution(index, end, perimeter, perimeter)


def _clamped(dart: Dart, settings: EngineSettings) -> Dart:
    left = max(settings.dart_min_half_width, float(dart.left_width))
    right = left if dart.symmetry is DartSymmetry.SYMMETRIC else max(settings.dart_min_half_width, float(dart.right_width))
    depth = max(settings.dart_min_depth, float(dart.depth))
    position = min(max(float(dart.position), 0.0), 1.0)
    return replace(dart, left_width=left, right_width=right, depth=depth, position=position)


def dart_geometry(
    polygon: Sequence[Point],
    dart: Dart,
    *,
    closed: bool = True,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> DartGeometry | None:
    """Base points and apex of *dart* on *polygon*.

    On closed polygons the base points sit ``left_width`` before and
    ``right_width`` after the anchor along its segment, never past the
    segment's endpoints, and the apex is pushed ``depth`` into the polygon
    along the segment normal. On open chains the base points are walked along
    the whole chain and the apex takes the fixed left-hand normal
    ``(-dy, dx)`` of the anchor segment.
    """

    resolution = resolve_anchor(polygon, dart, closed=closed)
    if resolution is None:
        return None
    dart = _clamped(dart, settings)
    count = len(polygon)
    start = polygon[resolution.segment_index]
    end = polygon[(resolution.segment_index + 1) % count]
    seg_length = distance(start, end)
    normal = perp(normalize(sub(end, start)))

    if closed:
        along = distance(start, resolution.point)
        seg_start = resolution.arclength - along
        left_along = max(0.0, along - dart.left_width)
        right_along = min(seg_length, along + dart.right_width)
        left = lerp(start, end, left_along / seg_length)
        right = lerp(start, end, right_along / seg_length)
        left_arclength = seg_start + left_along
        right_arclength = seg_start + right_along

        # test from the segment midpoint; the anchor itself may sit on a corner
        probe_distance = min(settings.dart_probe_distance, dart.depth)
        probe = add(lerp(start, end, 0.5), scale(normal, probe_distance))
        if not point_in_polygon(probe, polygon):
            normal = scale(normal, -1.0)
    else:
        segments = _segments(polygon, closed=False)
        left_arclength = max(0.0, resolution.arclength - dart.left_width)
        right_arclength = min(resolution.perimeter, resolution.arclength + dart.right_width)
        left = _point_at(segments, left_arclength)
        right = _point_at(segments, right_arclength)

    apex = add(resolution.point, scale(normal, dart.depth))
    return DartGeometry(
        dart_id=dart.id,
        segment_index=resolution.segment_index,
        arclength=resolution.arclength,
        left=left,
        apex=apex,
        right=right,
        left_arclength=left_arclength,
        right_arclength=right_arclength,
    )


def dart_geometries(figure: Figure, *, settings: EngineSettings = DEFAULT_SETTINGS) -> list[DartGeometry]:
    contour = _base_contour(figure, settings)
    if contour is None:
        return []
    polygon, closed = contour
    geometries: list[DartGeometry] = []
    for dart in figure.darts:
        geometry = dart_geometry(polygon, dart, closed=closed, settings=settings)
        if geometry is None:
            logger.warning("Dart %s on figure %s no longer resolves; skipped", dart.id, figure.id)
            continue
        geometries.append(geometry)
    return geometries


def _node_for(position: Point, existing: Sequence[Node], taken: set[str]) -> str:
    for node in existing:
        if node.id not in taken and distance(node.position, position) <= _SAME_POINT:
            return node.id
    return new_id("node")


def _vertex_ids(figure: Figure, vertices: Sequence[Point], taken: set[str], *, closed: bool) -> list[str]:
    ids: list[str] = []
    for index, vertex in enumerate(vertices):
        if ids and distance(vertices[index - 1], vertex) <= _SAME_POINT:
            ids.append(ids[-1])
        elif closed and ids and distance(vertices[0], vertex) <= _SAME_POINT:
            ids.append(ids[0])
        else:
            node_id = _node_for(vertex, figure.nodes, taken)
            taken.add(node_id)
            ids.append(node_id)
    return ids


def _rebuild_contour(
    figure: Figure,
    polygon: Sequence[Point],
    geometries: Sequence[DartGeometry],
    *,
    closed: bool = True,
) -> Figure:
    """Walk the base contour by arclength, splicing each dart in.

    A base point that lands on a contour vertex reuses that vertex's node, so
    the rebuilt contour never holds coincident neighbours. Contour vertices
    strictly between a dart's base points are dropped.
    """

    vertices = list(polygon) + ([polygon[0]] if closed and polygon else [])
    cumulative = [0.0]
    for a, b in zip(vertices, vertices[1:]):
        cumulative.append(cumulative[-1] + distance(a, b))

    taken: set[str] = set()
    vertex_ids = _vertex_ids(figure, vertices, taken, closed=closed)
    previous_ids = {dart.id: dart.node_ids for dart in figure.darts}

    nodes: list[Node] = []

    def push(node_id: str, point: Point) -> None:
        if nodes and nodes[-1].id == node_id:
            return
        nodes.append(Node(id=node_id, x=point[0], y=point[1]))

    def own_ids(dart_id: str) -> list[str]:
        previous = previous_ids.get(dart_id) or (None, None, None)
        ids = []
        for candidate in previous:
            if candidate is None or candidate in taken:
                candidate = new_id("node")
            taken.add(candidate)
            ids.append(candidate)
        return ids

    assigned: dict[str, tuple[str, str, str]] = {}
    index = 0
    count = len(vertices)
    for geometry in sorted(geometries, key=lambda item: item.arclength):
        left_id, apex_id, right_id = own_ids(geometry.dart_id)
        while index < count and cumulative[index] < geometry.left_arclength - _SAME_POINT:
            push(vertex_ids[index], vertices[index])
            index += 1
        if index < count and cumulative[index] <= geometry.left_arclength + _SAME_POINT:
            left_id = vertex_ids[index]
            push(left_id, vertices[index])
            index += 1
        else:
            push(left_id, geometry.left)
        push(apex_id, geometry.apex)
        while index < count and cumulative[index] < geometry.right_arclength - _SAME_POINT:
            index += 1
        if index < count and cumulative[index] <= geometry.right_arclength + _SAME_POINT:
            right_id = vertex_ids[index]
            push(right_id, vertices[index])
            index += 1
        else:
            push(right_id, geometry.right)
        assigned[geometry.dart_id] = (left_id, apex_id, right_id)
    while index < count:
        push(vertex_ids[index], vertices[index])
        index += 1
    if closed and len(nodes) > 1 and nodes[-1].id == nodes[0].id:
        nodes.pop()

    existing_edges = {(edge.from_node, edge.to_node): edge.id for edge in figure.edges}
    edges: list[Edge] = []
    for position, node in enumerate(nodes if closed else nodes[:-1]):
        following = nodes[(position + 1) % len(nodes)]
        edge_id = existing_edges.get((node.id, following.id)) or new_id("edge")
        edges.append(Edge(id=edge_id, from_node=node.id, to_node=following.id))

    darts = tuple(replace(dart, node_ids=assigned.get(dart.id, dart.node_ids)) for dart in figure.darts)
    rebuilt = replace(figure, nodes=tuple(nodes), edges=tuple(edges), closed=closed, darts=darts)
    return break_style_link(rebuilt)


def recompute_darts(figure: Figure, *, settings: EngineSettings = DEFAULT_SETTINGS) -> Figure:
    """Rebuild the contour from the base contour and every resolvable dart."""

    if not figure.darts:
        return figure
    contour = _base_contour(figure, settings)
    if contour is None:
        logger.warning("Figure %s has darts but no base contour; left unchanged", figure.id)
        return figure
    polygon, closed = contour
    geometries = dart_geometries(figure, settings=settings)
    return _rebuild_contour(figure, polygon, geometries, closed=closed)


def _snapshot(figure: Figure, polygon: Sequence[Point]) -> tuple[Point, ...] | None:
    if figure.dart_snapshot is not None:
        return figure.dart_snapshot
    return tuple(polygon)


def insert_dart(
    figure: Figure,
    position: float = 0.5,
    *,
    depth: float,
    left_width: float,
    right_width: float | None = None,
    symmetry: DartSymmetry = DartSymmetry.SYMMETRIC,
    link: DartLink = DartLink.FOLLOW,
    point: Point | None = None,
    dart_id: str | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Figure | None:
    """Insert a dart and return the re-contoured figure.

    ``left_width`` and ``right_width`` are half openings; symmetric darts use
    ``left_width`` on both sides. Closed figures take the dart on their base
    polygon, open line and curve figures on their chain. Returns ``None``
    when there is no base contour.
    """

    contour = _base_contour(figure, settings)
    if contour is None:
        return None
    polygon, closed = contour

    dart = _clamped(
        Dart(
            id=dart_id or new_id("dart"),
            position=position,
            point=point,
            left_width=left_width,
            right_width=left_width if right_width is None else right_width,
            depth=depth,
            symmetry=symmetry,
            link=link,
        ),
        settings,
    )
    if dart.link is DartLink.FROZEN and dart.point is None:
        resolution = resolve_anchor(polygon, replace(dart, link=DartLink.FOLLOW), closed=closed)
        if resolution is not None:
            dart = replace(dart, point=resolution.point)

    updated = replace(figure, darts=figure.darts + (dart,), dart_snapshot=_snapshot(figure, polygon))
    return recompute_darts(updated, settings=settings)


def _find(figure: Figure, dart_id: str) -> Dart:
    for dart in figure.darts:
        if dart.id == dart_id:
            return dart
    raise KeyError(f"Figure {figure.id} has no dart {dart_id!r}.")


def update_dart(
    figure: Figure,
    dart_id: str,
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
    **changes: object,
) -> Figure:
    """Change dart parameters and recompute the contour.

    Switching the link mode keeps the dart where it currently sits: freezing
    records the resolved point, following records the resolved fraction.
    """

    current = _find(figure, dart_id)
    dart = replace(current, **changes)  # type: ignore[arg-type]

    if dart.link is not current.link:
        contour = _base_contour(figure, settings)
        resolution = resolve_anchor(contour[0], current, closed=contour[1]) if contour is not None else None
        if resolution is not None:
            if dart.link is DartLink.FROZEN:
                dart = replace(dart, point=resolution.point)
            else:
                dart = replace(dart, position=resolution.arclength / resolution.perimeter)

    dart = _clamped(dart, settings)
    darts = tuple(dart if item.id == dart_id else item for item in figure.darts)
    return recompute_darts(replace(figure, darts=darts), settings=settings)


def freeze_dart(figure: Figure, dart_id: str, *, settings: EngineSettings = DEFAULT_SETTINGS) -> Figure:
    return update_dart(figure, dart_id, link=DartLink.FROZEN, settings=settings)


def follow_dart(figure: Figure, dart_id: str, *, settings: EngineSettings = DEFAULT_SETTINGS) -> Figure:
    return update_dart(figure, dart_id, link=DartLink.FOLLOW, settings=settings)


def remove_dart(figure: Figure, dart_id: str, *, settings: EngineSettings = DEFAULT_SETTINGS) -> Figure:
    """Remove a dart; removing the last one restores the pristine contour."""

    _find(figure, dart_id)
    remaining = tuple(dart for dart in figure.darts if dart.id != dart_id)
    if remaining:
        return recompute_darts(replace(figure, darts=remaining), settings=settings)

    contour = _base_contour(figure, settings)
    stripped = replace(figure, darts=())
    if contour is None:
        return replace(stripped, dart_snapshot=None)
    restored = _rebuild_contour(stripped, contour[0], [], closed=contour[1])
    return replace(restored, dart_snapshot=None)


def with_base_points(
    figure: Figure,
    points: Sequence[Point],
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Figure:
    """Replace the canonical base contour and re-place every dart on it."""

    closed = not is_open_chain(figure)
    minimum = 3 if closed else 2
    if len(points) < minimum:
        raise ValueError(f"A base contour needs at least {minimum} points.")
    base = tuple((float(x), float(y)) for x, y in points)
    updated = replace(figure, base_points=base)
    if not updated.darts:
        return _rebuild_contour(updated, base, [], closed=closed)
    return recompute_darts(updated, settings=settings)


__all__ = [
    "AnchorResolution",
    "DartGeometry",
    "base_chain",
    "base_polygon",
    "dart_geometries",
    "dart_geometry",
    "follow_dart",
    "freeze_dart",
    "insert_dart",
    "is_open_chain",
    "recompute_darts",
    "remove_dart",
    "resolve_anchor",
    "update_dart",
    "with_base_points",
]
