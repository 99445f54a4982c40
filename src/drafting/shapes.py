"""Constructors for the primitive figures drawn by the editor tools."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from .figure import (
    Edge,
    EdgeKind,
    Figure,
    FigureKind,
    Node,
    NodeMode,
    ShapeParams,
    TextBlock,
    figure_from_points,
    new_id,
)
from .vectors import Point

# Handle length ratio that makes four cubics approximate a circle.
KAPPA = 0.5522847498307936


def make_rect(width: float, height: float, *, x: float = 0.0, y: float = 0.0, rotation: float = 0.0) -> Figure:
    w = max(0.0, float(width))
    h = max(0.0, float(height))
    figure = figure_from_points(
        [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)],
        closed=True,
        kind=FigureKind.RECT,
        x=x,
        y=y,
        rotation=rotation,
    )
    return replace(figure, shape=ShapeParams(width=w, height=h))


def make_polygon(points: Sequence[Point], *, x: float = 0.0, y: float = 0.0, rotation: float = 0.0) -> Figure:
    return figure_from_points(list(points), closed=True, kind=FigureKind.POLYGON, x=x, y=y, rotation=rotation)


def make_polyline(points: Sequence[Point], *, x: float = 0.0, y: float = 0.0) -> Figure:
    return figure_from_points(list(points), closed=False, kind=FigureKind.LINE, x=x, y=y)


def ellipse_nodes(rx: float, ry: float) -> tuple[Node, ...]:
    """Four smooth cardinal nodes, clockwise on screen, with absolute handles."""

    rx = max(0.0, float(rx))
    ry = max(0.0, float(ry))
    hx = KAPPA * rx
    hy = KAPPA * ry
    layout = (
        ((rx, 0.0), (rx, -hy), (rx, hy)),
        ((0.0, ry), (hx, ry), (-hx, ry)),
        ((-rx, 0.0), (-rx, hy), (-rx, -hy)),
        ((0.0, -ry), (-hx, -ry), (hx, -ry)),
    )
    return tuple(
        Node(id=new_id("node"), x=pos[0], y=pos[1], in_handle=in_h, out_handle=out_h, mode=NodeMode.SMOOTH)
        for pos, in_h, out_h in layout
    )


def make_circle(radius: float, *, x: float = 0.0, y: float = 0.0) -> Figure:
    """A circle centred on its local origin, placed at ``(x, y)``."""

    nodes = ellipse_nodes(radius, radius)
    edges = tuple(
        Edge(id=new_id("edge"), from_node=nodes[i].id, to_node=nodes[(i + 1) % 4].id, kind=EdgeKind.CUBIC)
        for i in range(4)
    )
    return Figure(
        id=new_id("fig"),
        kind=FigureKind.CIRCLE,
        nodes=nodes,
        edges=edges,
        closed=True,
        x=x,
        y=y,
        shape=ShapeParams(radius=max(0.0, float(radius))),
    )


def make_curve(
    start: Point,
    end: Point,
    *,
    out_handle: Point | None = None,
    in_handle: Point | None = None,
    x: float = 0.0,
    y: float = 0.0,
) -> Figure:
    """An open two-node cubic. Handles default to the chord thirds."""

    sx, sy = start
    ex, ey = end
    if out_handle is None:
        out_handle = (sx + (ex - sx) / 3.0, sy + (ey - sy) / 3.0)
    if in_handle is None:
        in_handle = (sx + 2.0 * (ex - sx) / 3.0, sy + 2.0 * (ey - sy) / 3.0)
    a = Node(id=new_id("node"), x=float(sx), y=float(sy), out_handle=out_handle, mode=NodeMode.SMOOTH)
    b = Node(id=new_id("node"), x=float(ex), y=float(ey), in_handle=in_handle, mode=NodeMode.SMOOTH)
    return Figure(
        id=new_id("fig"),
        kind=FigureKind.CURVE,
        nodes=(a, b),
        edges=(Edge(id=new_id("edge"), from_node=a.id, to_node=b.id, kind=EdgeKind.CUBIC),),
        closed=False,
        x=x,
        y=y,
    )


def make_text(text: str, *, x: float = 0.0, y: float = 0.0, rotation: float = 0.0, **metrics: float) -> Figure:
    return Figure(
        id=new_id("fig"),
        kind=FigureKind.TEXT,
        x=x,
        y=y,
        rotation=rotation,
        text=TextBlock(text=text, **metrics),
    )


__all__ = [
    "KAPPA",
    "ellipse_nodes",
    "make_circle",
    "make_curve",
    "make_polygon",
    "make_polyline",
    "make_rect",
    "make_text",
]
