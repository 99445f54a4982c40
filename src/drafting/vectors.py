"""2D vector primitives shared by every drafting engine.

Points are plain ``(x, y)`` float tuples. All helpers are total: degenerate
input (zero-length vectors, empty sequences) yields a neutral value instead of
raising.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

Point = tuple[float, float]

EPSILON = 1e-9


def add(a: Point, b: Point) -> Point:
    return (a[0] + b[0], a[1] + b[1])


def sub(a: Point, b: Point) -> Point:
    return (a[0] - b[0], a[1] - b[1])


def scale(a: Point, factor: float) -> Point:
    return (a[0] * factor, a[1] * factor)


def dot(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1]


def cross(a: Point, b: Point) -> float:
    return a[0] * b[1] - a[1] * b[0]


def length(a: Point) -> float:
    return math.hypot(a[0], a[1])


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def normalize(a: Point) -> Point:
    """Return the unit vector along *a*, or ``(0, 0)`` when *a* is degenerate."""

    magnitude = length(a)
    if magnitude <= EPSILON:
        return (0.0, 0.0)
    return (a[0] / magnitude, a[1] / magnitude)


def perp(a: Point) -> Point:
    return (-a[1], a[0])


def lerp(a: Point, b: Point, t: float) -> Point:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def rotate(a: Point, degrees: float) -> Point:
    radians = math.radians(degrees)
    c = math.cos(radians)
    s = math.sin(radians)
    return (a[0] * c - a[1] * s, a[0] * s + a[1] * c)


def rotate_inv(a: Point, degrees: float) -> Point:
    return rotate(a, -degrees)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def cubic_at(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3.0 * mt * mt * t
    c = 3.0 * mt * t * t
    d = t * t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
        a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
    )


def sample_cubic(p0: Point, p1: Point, p2: Point, p3: Point, steps: int) -> list[Point]:
    """Sample a cubic Bezier into ``steps + 1`` points, endpoints included."""

    count = max(1, int(steps))
    t = np.linspace(0.0, 1.0, count + 1)[:, None]
    mt = 1.0 - t
    control = np.asarray([p0, p1, p2, p3], dtype=float)
    samples = (
        (mt**3) * control[0]
        + 3.0 * (mt**2) * t * control[1]
        + 3.0 * mt * (t**2) * control[2]
        + (t**3) * control[3]
    )
    points = [(float(x), float(y)) for x, y in samples]
    # Pin the endpoints exactly; the polynomial form drifts by an ulp or two.
    points[0] = (float(p0[0]), float(p0[1]))
    points[-1] = (float(p3[0]), float(p3[1]))
    return points


def signed_area(points: Sequence[Point]) -> float:
    """Shoelace area. Positive means clockwise on a Y-down canvas."""

    if len(points) < 3:
        return 0.0
    coords = np.asarray(points, dtype=float)
    x = coords[:, 0]
    y = coords[:, 1]
    return float(0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)))


def centroid(points: Sequence[Point]) -> Point:
    if not points:
        return (0.0, 0.0)
    area = signed_area(points)
    if abs(area) <= EPSILON:
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return (sum(xs) / len(xs), sum(ys) / len(ys))
    factor = 1.0 / (6.0 * area)
    cx = 0.0
    cy = 0.0
    closed = list(points)
    for (x0, y0), (x1, y1) in zip(closed, closed[1:] + closed[:1]):
        c = x0 * y1 - x1 * y0
        cx += (x0 + x1) * c
        cy += (y0 + y1) * c
    return (cx * factor, cy * factor)


def polyline_length(points: Sequence[Point], *, closed: bool = False) -> float:
    if len(points) < 2:
        return 0.0
    total = sum(distance(a, b) for a, b in zip(points, points[1:]))
    if closed:
        total += distance(points[-1], points[0])
    return total


def point_segment_distance(p: Point, a: Point, b: Point) -> tuple[float, float]:
    """Return ``(distance, t)`` from *p* to segment ``a -> b`` with ``t`` in [0, 1]."""

    ab = sub(b, a)
    denom = dot(ab, ab)
    if denom <= EPSILON * EPSILON:
        return distance(p, a), 0.0
    t = clamp(dot(sub(p, a), ab) / denom, 0.0, 1.0)
    return distance(p, lerp(a, b, t)), t


def point_in_polygon(p: Point, polygon: Sequence[Point]) -> bool:
    """Even-odd ray casting test."""

    inside = False
    count = len(polygon)
    if count < 3:
        return False
    x, y = p
    j = count - 1
    for i in range(count):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def line_intersection(
    p: Point,
    r: Point,
    q: Point,
    s: Point,
) -> Point | None:
    """Intersect the infinite lines ``p + t*r`` and ``q + u*s``."""

    denom = cross(r, s)
    if abs(denom) <= EPSILON:
        return None
    t = cross(sub(q, p), s) / denom
    return (p[0] + r[0] * t, p[1] + r[1] * t)


def segment_intersection(
    a0: Point,
    a1: Point,
    b0: Point,
    b1: Point,
) -> tuple[Point, float, float] | None:
    """Intersect two segments, returning the point and both parameters."""

    r = sub(a1, a0)
    s = sub(b1, b0)
    denom = cross(r, s)
    if abs(denom) <= EPSILON:
        return None
    qp = sub(b0, a0)
    t = cross(qp, s) / denom
    u = cross(qp, r) / denom
    if t < 0.0 or t > 1.0 or u < 0.0 or u > 1.0:
        return None
    return (a0[0] + r[0] * t, a0[1] + r[1] * t), t, u


def screen_ccw_turn(incoming: Point, outgoing: Point) -> float:
    """Signed turn in (-pi, pi]; positive turns counter-clockwise on a Y-down screen."""

    turn = math.atan2(incoming[1], incoming[0]) - math.atan2(outgoing[1], outgoing[0])
    while turn <= -math.pi:
        turn += 2.0 * math.pi
    while turn > math.pi:
        turn -= 2.0 * math.pi
    return turn


def flatten_points(points: Sequence[Point]) -> list[float]:
    """Return ``[x0, y0, x1, y1, ...]`` for canvas-style consumers."""

    flat: list[float] = []
    for x, y in points:
        flat.extend((float(x), float(y)))
    return flat


__all__ = [
    "EPSILON",
    "Point",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "length",
    "distance",
    "normalize",
    "perp",
    "lerp",
    "rotate",
    "rotate_inv",
    "clamp",
    "cubic_at",
    "sample_cubic",
    "signed_area",
    "centroid",
    "polyline_length",
    "point_segment_distance",
    "point_in_polygon",
    "line_intersection",
    "segment_intersection",
    "screen_ccw_turn",
    "flatten_points",
]
