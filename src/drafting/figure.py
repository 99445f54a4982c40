"""Immutable figure model shared by every drafting engine.

A figure is an arena of nodes and edges cross-referenced by id. Every value in
this module is a frozen dataclass; engines derive new figures with
:func:`dataclasses.replace` and never mutate their inputs.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union

from .vectors import Point


def new_id(prefix: str) -> str:
    """Return a fresh identifier such as ``node_1f3c...``."""

    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class NodeMode(str, Enum):
    CORNER = "corner"
    SMOOTH = "smooth"


class EdgeKind(str, Enum):
    LINE = "line"
    CUBIC = "cubic"


class FigureKind(str, Enum):
    LINE = "line"
    RECT = "rect"
    CIRCLE = "circle"
    CURVE = "curve"
    POLYGON = "polygon"
    TEXT = "text"
    SEAM = "seam"


class DartSymmetry(str, Enum):
    SYMMETRIC = "symmetric"
    ASYMMETRIC = "asymmetric"


class DartLink(str, Enum):
    """How a dart anchor reacts to base contour edits."""

    FOLLOW = "follow"
    FROZEN = "frozen"


def _point(value: Any, label: str) -> Point:
    if isinstance(value, Mapping):
        return (float(value["x"]), float(value["y"]))
    try:
        x, y = value
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be a pair of coordinates.") from exc
    return (float(x), float(y))


def _optional_point(value: Any, label: str) -> Point | None:
    if value is None:
        return None
    return _point(value, label)


@dataclass(frozen=True, slots=True)
class Node:
    id: str
    x: float
    y: float
    in_handle: Point | None = None
    out_handle: Point | None = None
    mode: NodeMode = NodeMode.CORNER

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Node":
        if "id" not in payload:
            raise KeyError("Nodes require an id.")
        return cls(
            id=str(payload["id"]),
            x=float(payload.get("x", 0.0)),
            y=float(payload.get("y", 0.0)),
            in_handle=_optional_point(payload.get("in_handle"), "in_handle"),
            out_handle=_optional_point(payload.get("out_handle"), "out_handle"),
            mode=NodeMode(payload.get("mode", NodeMode.CORNER.value)),
        )

    def to_mapping(self) -> dict[str, object]:
        data: dict[str, object] = {"id": self.id, "x": self.x, "y": self.y, "mode": self.mode.value}
        if self.in_handle is not None:
            data["in_handle"] = list(self.in_handle)
        if self.out_handle is not None:
            data["out_handle"] = list(self.out_handle)
        return data


@dataclass(frozen=True, slots=True)
class Edge:
    id: str
    from_node: str
    to_node: str
    kind: EdgeKind = EdgeKind.LINE

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Edge":
        for key in ("id", "from_node", "to_node"):
            if key not in payload:
                raise KeyError(f"Edges require {key}.")
        return cls(
            id=str(payload["id"]),
            from_node=str(payload["from_node"]),
            to_node=str(payload["to_node"]),
            kind=EdgeKind(payload.get("kind", EdgeKind.LINE.value)),
        )

    def to_mapping(self) -> dict[str, object]:
        return {
            "id": self.id,
            "from_node": self.from_node,
            "to_node": self.to_node,
            "kind": self.kind.value,
        }


@dataclass(frozen=True, slots=True)
class Dart:
    """A triangular fold anchored on the base contour.

    ``left_width`` and ``right_width`` are half openings measured along the
    contour segment. ``position`` drives follow-mode anchors, ``point``
    frozen-mode anchors. ``node_ids`` names the left base, apex and right base
    nodes once the dart has been materialised into the figure.
    """

    id: str
    position: float = 0.5
    point: Point | None = None
    left_width: float = 1.0
    right_width: float = 1.0
    depth: float = 5.0
    symmetry: DartSymmetry = DartSymmetry.SYMMETRIC
    link: DartLink = DartLink.FOLLOW
    node_ids: tuple[str, str, str] | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Dart":
        if "id" not in payload:
            raise KeyError("Darts require an id.")
        node_ids_raw = payload.get("node_ids")
        node_ids = None
        if node_ids_raw is not None:
            if len(node_ids_raw) != 3:
                raise ValueError("Dart node_ids must name exactly three nodes.")
            node_ids = tuple(str(item) for item in node_ids_raw)
        return cls(
            id=str(payload["id"]),
            position=float(payload.get("position", 0.5)),
            point=_optional_point(payload.get("point"), "point"),
            left_width=float(payload.get("left_width", 1.0)),
            right_width=float(payload.get("right_width", payload.get("left_width", 1.0))),
            depth=float(payload.get("depth", 5.0)),
            symmetry=DartSymmetry(payload.get("symmetry", DartSymmetry.SYMMETRIC.value)),
            link=DartLink(payload.get("link", DartLink.FOLLOW.value)),
            node_ids=node_ids,  # type: ignore[arg-type]
        )

    def to_mapping(self) -> dict[str, object]:
        data: dict[str, object] = {
            "id": self.id,
            "position": self.position,
            "left_width": self.left_width,
            "right_width": self.right_width,
            "depth": self.depth,
            "symmetry": self.symmetry.value,
            "link": self.link.value,
        }
        if self.point is not None:
            data["point"] = list(self.point)
        if self.node_ids is not None:
            data["node_ids"] = list(self.node_ids)
        return data


@dataclass(frozen=True, slots=True)
class ShapeParams:
    """Primitive parameters that pin down a canonical base polygon."""

    width: float | None = None
    height: float | None = None
    radius: float | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ShapeParams":
        def _get(key: str) -> float | None:
            value = payload.get(key)
            return float(value) if value is not None else None

        return cls(width=_get("width"), height=_get("height"), radius=_get("radius"))

    def to_mapping(self) -> dict[str, object]:
        return {
            key: value
            for key, value in (("width", self.width), ("height", self.height), ("radius", self.radius))
            if value is not None
        }


@dataclass(frozen=True, slots=True)
class TextBlock:
    text: str
    font_size: float = 18.0
    line_height: float = 1.25
    letter_spacing: float = 0.0
    padding: float = 0.0
    width: float | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TextBlock":
        width = payload.get("width")
        return cls(
            text=str(payload.get("text", "")),
            font_size=float(payload.get("font_size", 18.0)),
            line_height=float(payload.get("line_height", 1.25)),
            letter_spacing=float(payload.get("letter_spacing", 0.0)),
            padding=float(payload.get("padding", 0.0)),
            width=float(width) if width is not None else None,
        )

    def to_mapping(self) -> dict[str, object]:
        data: dict[str, object] = {
            "text": self.text,
            "font_size": self.font_size,
            "line_height": self.line_height,
            "letter_spacing": self.letter_spacing,
            "padding": self.padding,
        }
        if self.width is not None:
            data["width"] = self.width
        return data


@dataclass(frozen=True, slots=True)
class EdgeStyle:
    """Per-edge stroke override."""

    stroke: str | None = None
    stroke_width: float | None = None
    dash: tuple[float, ...] | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "EdgeStyle":
        stroke_width = payload.get("stroke_width")
        dash = payload.get("dash")
        stroke = payload.get("stroke")
        return cls(
            stroke=str(stroke) if stroke is not None else None,
            stroke_width=float(stroke_width) if stroke_width is not None else None,
            dash=tuple(float(v) for v in dash) if dash is not None else None,
        )

    def to_mapping(self) -> dict[str, object]:
        data: dict[str, object] = {}
        if self.stroke is not None:
            data["stroke"] = self.stroke
        if self.stroke_width is not None:
            data["stroke_width"] = self.stroke_width
        if self.dash is not None:
            data["dash"] = list(self.dash)
        return data


SeamOffset = Union[float, Mapping[str, float]]


@dataclass(frozen=True, slots=True)
class SeamInfo:
    """Provenance of a derived seam-allowance figure."""

    parent_id: str
    offset: SeamOffset = field(hash=False)
    source_signature: str
    segment_edge_ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.offset, Mapping):
            object.__setattr__(self, "offset", MappingProxyType(dict(self.offset)))

    @property
    def per_edge(self) -> bool:
        return isinstance(self.offset, Mapping)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "SeamInfo":
        if "parent_id" not in payload:
            raise KeyError("Seam metadata requires parent_id.")
        raw_offset = payload.get("offset", 0.0)
        offset: SeamOffset
        if isinstance(raw_offset, Mapping):
            offset = {str(key): float(value) for key, value in raw_offset.items()}
        else:
            offset = float(raw_offset)
        return cls(
            parent_id=str(payload["parent_id"]),
            offset=offset,
            source_signature=str(payload.get("source_signature", "")),
            segment_edge_ids=tuple(str(item) for item in payload.get("segment_edge_ids", ())),
        )

    def to_mapping(self) -> dict[str, object]:
        offset: object = dict(self.offset) if isinstance(self.offset, Mapping) else self.offset
        data: dict[str, object] = {
            "parent_id": self.parent_id,
            "offset": offset,
            "source_signature": self.source_signature,
        }
        if self.segment_edge_ids:
            data["segment_edge_ids"] = list(self.segment_edge_ids)
        return data


@dataclass(frozen=True, slots=True)
class CurveParams:
    height: float = 1.0
    bias: float = 0.0
    flip_x: bool = False
    flip_y: bool = False
    rotation_deg: float = 0.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "CurveParams":
        return cls(
            height=float(payload.get("height", 1.0)),
            bias=float(payload.get("bias", 0.0)),
            flip_x=bool(payload.get("flip_x", False)),
            flip_y=bool(payload.get("flip_y", False)),
            rotation_deg=float(payload.get("rotation_deg", 0.0)),
        )

    def to_mapping(self) -> dict[str, object]:
        return {
            "height": self.height,
            "bias": self.bias,
            "flip_x": self.flip_x,
            "flip_y": self.flip_y,
            "rotation_deg": self.rotation_deg,
        }


@dataclass(frozen=True, slots=True)
class CustomCurve:
    """A manually edited curve, optionally remembering the preset it left."""

    derived_from: tuple[str, str] | None = None

    def to_mapping(self) -> dict[str, object]:
        data: dict[str, object] = {"type": "custom"}
        if self.derived_from is not None:
            data["derived_from"] = {
                "preset_id": self.derived_from[0],
                "technical_id": self.derived_from[1],
            }
        return data


@dataclass(frozen=True, slots=True)
class StyledCurve:
    """A live instance of a named curve preset."""

    preset_id: str
    technical_id: str
    params: CurveParams = field(default_factory=CurveParams)

    def to_mapping(self) -> dict[str, object]:
        return {
            "type": "styled",
            "preset_id": self.preset_id,
            "technical_id": self.technical_id,
            "params": self.params.to_mapping(),
        }


CurveStyle = Union[CustomCurve, StyledCurve]


def curve_style_from_mapping(payload: Mapping[str, Any]) -> CurveStyle:
    style_type = payload.get("type")
    if style_type == "styled":
        return StyledCurve(
            preset_id=str(payload["preset_id"]),
            technical_id=str(payload["technical_id"]),
            params=CurveParams.from_mapping(payload.get("params", {}) or {}),
        )
    if style_type == "custom":
        derived = payload.get("derived_from")
        derived_from = None
        if derived is not None:
            derived_from = (str(derived["preset_id"]), str(derived["technical_id"]))
        return CustomCurve(derived_from=derived_from)
    raise ValueError(f"Unknown curve style type {style_type!r}.")


@dataclass(frozen=True, slots=True)
class Figure:
    """A pattern piece or drawn shape.

    ``x``, ``y`` and ``rotation`` (degrees) place the local node frame in the
    world. ``base_points`` and ``dart_snapshot`` hold the pristine contour used
    by the dart engine; see :mod:`drafting.darts`.
    """

    id: str
    kind: FigureKind
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    closed: bool = False
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0
    darts: tuple[Dart, ...] = ()
    base_points: tuple[Point, ...] | None = None
    dart_snapshot: tuple[Point, ...] | None = None
    shape: ShapeParams | None = None
    text: TextBlock | None = None
    edge_styles: Mapping[str, EdgeStyle] = field(default_factory=dict, hash=False)
    seam: SeamInfo | None = None
    curve: CurveStyle | None = None

    def __post_init__(self) -> None:
        # read-only view; left out of the hash but still compared
        object.__setattr__(self, "edge_styles", MappingProxyType(dict(self.edge_styles)))

    def node_map(self) -> dict[str, Node]:
        return {node.id: node for node in self.nodes}

    def edge_map(self) -> dict[str, Edge]:
        return {edge.id: edge for edge in self.edges}

    def get_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Edge | None:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Figure":
        if "id" not in payload:
            raise KeyError("Figures require an id.")

        def _points(key: str) -> tuple[Point, ...] | None:
            raw = payload.get(key)
            if raw is None:
                return None
            return tuple(_point(item, key) for item in raw)

        shape = payload.get("shape")
        text = payload.get("text")
        seam = payload.get("seam")
        curve = payload.get("curve")
        return cls(
            id=str(payload["id"]),
            kind=FigureKind(payload.get("kind", FigureKind.POLYGON.value)),
            nodes=tuple(Node.from_mapping(item) for item in payload.get("nodes", ())),
            edges=tuple(Edge.from_mapping(item) for item in payload.get("edges", ())),
            closed=bool(payload.get("closed", False)),
            x=float(payload.get("x", 0.0)),
            y=float(payload.get("y", 0.0)),
            rotation=float(payload.get("rotation", 0.0)),
            darts=tuple(Dart.from_mapping(item) for item in payload.get("darts", ())),
            base_points=_points("base_points"),
            dart_snapshot=_points("dart_snapshot"),
            shape=ShapeParams.from_mapping(shape) if shape is not None else None,
            text=TextBlock.from_mapping(text) if text is not None else None,
            edge_styles={
                str(edge_id): EdgeStyle.from_mapping(style)
                for edge_id, style in (payload.get("edge_styles") or {}).items()
            },
            seam=SeamInfo.from_mapping(seam) if seam is not None else None,
            curve=curve_style_from_mapping(curve) if curve is not None else None,
        )

    def to_mapping(self) -> dict[str, object]:
        data: dict[str, object] = {
            "id": self.id,
            "kind": self.kind.value,
            "closed": self.closed,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "nodes": [node.to_mapping() for node in self.nodes],
            "edges": [edge.to_mapping() for edge in self.edges],
        }
        if self.darts:
            data["darts"] = [dart.to_mapping() for dart in self.darts]
        if self.base_points is not None:
            data["base_points"] = [list(point) for point in self.base_points]
        if self.dart_snapshot is not None:
            data["dart_snapshot"] = [list(point) for point in self.dart_snapshot]
        if self.shape is not None:
            data["shape"] = self.shape.to_mapping()
        if self.text is not None:
            data["text"] = self.text.to_mapping()
        if self.edge_styles:
            data["edge_styles"] = {key: style.to_mapping() for key, style in self.edge_styles.items()}
        if self.seam is not None:
            data["seam"] = self.seam.to_mapping()
        if self.curve is not None:
            data["curve"] = self.curve.to_mapping()
        return data


def figure_from_points(
    points: list[Point] | tuple[Point, ...],
    *,
    closed: bool = True,
    kind: FigureKind = FigureKind.POLYGON,
    figure_id: str | None = None,
    x: float = 0.0,
    y: float = 0.0,
    rotation: float = 0.0,
) -> Figure:
    """Build a figure of line edges through *points* in order."""

    nodes = tuple(Node(id=new_id("node"), x=float(px), y=float(py)) for px, py in points)
    edges: list[Edge] = []
    count = len(nodes)
    segment_count = count if closed and count >= 3 else count - 1
    for index in range(max(0, segment_count)):
        edges.append(
            Edge(
                id=new_id("edge"),
                from_node=nodes[index].id,
                to_node=nodes[(index + 1) % count].id,
            )
        )
    return Figure(
        id=figure_id or new_id("fig"),
        kind=kind,
        nodes=nodes,
        edges=tuple(edges),
        closed=closed and count >= 3,
        x=x,
        y=y,
        rotation=rotation,
    )


__all__ = [
    "CurveParams",
    "CurveStyle",
    "CustomCurve",
    "Dart",
    "DartLink",
    "DartSymmetry",
    "Edge",
    "EdgeKind",
    "EdgeStyle",
    "Figure",
    "FigureKind",
    "Node",
    "NodeMode",
    "SeamInfo",
    "SeamOffset",
    "ShapeParams",
    "StyledCurve",
    "TextBlock",
    "curve_style_from_mapping",
    "figure_from_points",
    "new_id",
]
