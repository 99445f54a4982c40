"""Derived lengths and angles shown alongside a figure."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .figure import EdgeKind, Figure, FigureKind
from .figure_path import edge_local_points, figure_local_polyline
from .vectors import Point, cross, distance, polyline_length, sub

EDGE_LENGTH_STEPS = 40
CURVE_LENGTH_STEPS = 80


@dataclass(frozen=True, slots=True)
class EdgeMeasure:
    edge_id: str
    kind: EdgeKind
    length: float
    angle_deg: float

    def to_mapping(self) -> dict[str, object]:
        return {
            "edge_id": self.edge_id,
            "kind": self.kind.value,
            "length": self.length,
            "angle_deg": self.angle_deg,
        }


@dataclass(frozen=True, slots=True)
class CircleMeasure:
    radius: float
    diameter: float
    circumference: float


@dataclass(frozen=True, slots=True)
class CurveMeasure:
    length: float
    tangent_angle_deg: float | None = None
    curvature_radius: float | None = None


@dataclass(frozen=True, slots=True)
class FigureMeasures:
    """Lengths in drawing units; angles in degrees on the Y-down canvas."""

    total_length: float
    edges: tuple[EdgeMeasure, ...] = field(default_factory=tuple)
    circle: CircleMeasure | None = None
    curve: CurveMeasure | None = None

    def to_mapping(self) -> dict[str, object]:
        data: dict[str, object] = {
            "total_length": self.total_length,
            "edges": [edge.to_mapping() for edge in self.edges],
        }
        if self.circle is not None:
            data["circle"] = {
                "radius": self.circle.radius,
                "diameter": self.circle.diameter,
                "circumference": self.circle.circumference,
            }
        if self.curve is not None:
            data["curve"] = {
                "length": self.curve.length,
                "tangent_angle_deg": self.curve.tangent_angle_deg,
                "curvature_radius": self.curve.curvature_radius,
            }
        return data


def chord_angle(a: Point, b: Point) -> float:
    return math.degrees(math.atan2(b[1] - a[1], b[0] - a[0]))


def circumradius(a: Point, b: Point, c: Point) -> float:
    """Radius of the circle through three points; ``inf`` when collinear."""

    twice_area = abs(cross(sub(b, a), sub(c, a)))
    if not math.isfinite(twice_area) or twice_area <= 1e-9:
        return math.inf
    return distance(a, b) * distance(b, c) * distance(c, a) / (2.0 * twice_area)


def _circle_measure(figure: Figure, total_length: float) -> CircleMeasure | None:
    points = [node.position for node in figure.nodes]
    if not points:
        return None
    center = (sum(p[0] for p in points) / len(points), sum(p[1] for p in points) / len(points))
    radius = sum(distance(point, center) for point in points) / len(points)
    circumference = total_length if figure.closed else max(0.0, 2.0 * math.pi * radius)
    return CircleMeasure(radius=radius, diameter=2.0 * radius, circumference=circumference)


def _curve_measure(figure: Figure) -> CurveMeasure:
    points = figure_local_polyline(figure, CURVE_LENGTH_STEPS)
    total = polyline_length(points)
    if len(points) < 3:
        return CurveMeasure(length=total)
    mid = max(1, min(len(points) - 2, len(points) // 2))
    before, middle, after = points[mid - 1], points[mid], points[mid + 1]
    radius = circumradius(before, middle, after)
    return CurveMeasure(
        length=total,
        tangent_angle_deg=chord_angle(before, after),
        curvature_radius=radius if math.isfinite(radius) else None,
    )


def compute_figure_measures(figure: Figure) -> FigureMeasures:
    nodes = figure.node_map()
    edges: list[EdgeMeasure] = []
    total = 0.0
    for edge in figure.edges:
        start = nodes.get(edge.from_node)
        end = nodes.get(edge.to_node)
        if start is None or end is None:
            continue
        edge_length = polyline_length(edge_local_points(figure, edge, EDGE_LENGTH_STEPS, nodes=nodes))
        total += edge_length
        edges.append(
            EdgeMeasure(
                edge_id=edge.id,
                kind=edge.kind,
                length=edge_length,
                angle_deg=chord_angle(start.position, end.position),
            )
        )

    circle = _circle_measure(figure, total) if figure.kind is FigureKind.CIRCLE else None
    curve = None
    if figure.kind is FigureKind.CURVE:
        curve = _curve_measure(figure)
        # multi-edge curves read more stably off the whole polyline
        total = curve.length
    return FigureMeasures(total_length=total, edges=tuple(edges), circle=circle, curve=curve)


__all__ = [
    "CircleMeasure",
    "CurveMeasure",
    "EdgeMeasure",
    "FigureMeasures",
    "chord_angle",
    "circumradius",
    "compute_figure_measures",
]
