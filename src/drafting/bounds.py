"""World-space bounding boxes for figures, including text blocks."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from .figure import Figure, FigureKind, TextBlock
from .figure_path import figure_local_to_world, figure_world_polyline
from .settings import DEFAULT_SETTINGS, EngineSettings
from .vectors import Point, clamp

CHAR_WIDTH_RATIO = 0.62
MIN_TEXT_WIDTH = 12.0


@dataclass(frozen=True, slots=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return (self.x + self.width * 0.5, self.y + self.height * 0.5)

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "BoundingBox | None":
        xs: list[float] = []
        ys: list[float] = []
        for px, py in points:
            xs.append(px)
            ys.append(py)
        if not xs:
            return None
        min_x = min(xs)
        min_y = min(ys)
        return cls(x=min_x, y=min_y, width=max(xs) - min_x, height=max(ys) - min_y)

    def union(self, other: "BoundingBox") -> "BoundingBox":
        min_x = min(self.x, other.x)
        min_y = min(self.y, other.y)
        return BoundingBox(
            x=min_x,
            y=min_y,
            width=max(self.right, other.right) - min_x,
            height=max(self.bottom, other.bottom) - min_y,
        )

    def intersects(self, other: "BoundingBox") -> bool:
        return not (
            other.x > self.right
            or other.right < self.x
            or other.y > self.bottom
            or other.bottom < self.y
        )

    def to_mapping(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def text_block_size(block: TextBlock) -> tuple[float, float] | None:
    """Estimate the rendered size of *block* from its font metrics alone.

    Each character is assumed to be ``0.62 * font_size`` wide plus the letter
    spacing. An explicit ``width`` acts as the wrap width: long lines are
    broken into as many rows as needed to fit it.
    """

    if not block.text.strip():
        return None
    font_size = clamp(block.font_size or 18.0, 6.0, 300.0)
    line_height = clamp(block.line_height or 1.25, 0.8, 3.0)
    padding = clamp(block.padding, 0.0, 50.0)
    char_width = max(1e-6, font_size * CHAR_WIDTH_RATIO + block.letter_spacing)

    lines = block.text.split("\n")
    longest = max(len(line) for line in lines)
    if block.width is not None and block.width > 0:
        chars_per_row = max(1, int(math.floor(block.width / char_width)))
        rows = sum(max(1, math.ceil(len(line) / chars_per_row)) for line in lines)
        width = float(block.width)
    else:
        rows = len(lines)
        width = max(MIN_TEXT_WIDTH, longest * char_width)

    return width + 2.0 * padding, rows * font_size * line_height + 2.0 * padding


def _text_corners(figure: Figure) -> list[Point] | None:
    if figure.text is None:
        return None
    size = text_block_size(figure.text)
    if size is None:
        return None
    # the anchor is the content origin; padding extends the box on every side
    pad = clamp(figure.text.padding, 0.0, 50.0)
    right = size[0] - pad
    bottom = size[1] - pad
    corners = ((-pad, -pad), (right, -pad), (right, bottom), (-pad, bottom))
    return [figure_local_to_world(figure, corner) for corner in corners]


def _dart_points(figure: Figure) -> list[Point]:
    dart_node_ids = {node_id for dart in figure.darts if dart.node_ids for node_id in dart.node_ids}
    if not dart_node_ids:
        return []
    return [figure_local_to_world(figure, node.position) for node in figure.nodes if node.id in dart_node_ids]


def figure_world_bounding_box(
    figure: Figure,
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> BoundingBox | None:
    if figure.kind is FigureKind.TEXT:
        corners = _text_corners(figure)
        if corners is None:
            return None
        return BoundingBox.from_points(corners)

    points = figure_world_polyline(figure, settings.bbox_steps)
    points.extend(_dart_points(figure))
    return BoundingBox.from_points(points)


def union_bounding_box(
    figures: Sequence[Figure],
    *,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> BoundingBox | None:
    result: BoundingBox | None = None
    for figure in figures:
        box = figure_world_bounding_box(figure, settings=settings)
        if box is None:
            continue
        result = box if result is None else result.union(box)
    return result


__all__ = [
    "BoundingBox",
    "figure_world_bounding_box",
    "text_block_size",
    "union_bounding_box",
]
