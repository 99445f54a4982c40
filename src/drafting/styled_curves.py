"""Named garment curves projected onto two-node Bezier figures.

Each technical template is a cubic in a normalised frame: the chord runs from
``(0, 0)`` to ``(1, 0)`` and ``y`` is measured in chord lengths along the
perpendicular. Semantic presets give garment-specific names to technical
templates together with default shaping parameters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from .figure import (
    CurveParams,
    CustomCurve,
    Edge,
    EdgeKind,
    Figure,
    FigureKind,
    Node,
    NodeMode,
    StyledCurve,
    new_id,
)
from .figure_path import figure_local_to_world, world_to_figure_local
from .vectors import Point, add, clamp, length, perp, rotate, scale, sub

logger = logging.getLogger(__name__)


class CurveCategory(str, Enum):
    CAVA = "cava"
    BUSTO = "busto"
    DECOTE = "decote"
    OMBRO_GOLA = "ombro_gola"
    GANCHO = "gancho"
    CINTURA = "cintura"
    QUADRIL = "quadril"
    BARRA = "barra"
    TECNICO = "tecnico"


@dataclass(frozen=True, slots=True)
class TechnicalTemplate:
    id: str
    label: str
    p1: Point
    p2: Point


@dataclass(frozen=True, slots=True)
class SemanticPreset:
    id: str
    label: str
    category: CurveCategory
    technical_id: str
    default_params: CurveParams = field(default_factory=CurveParams)


TECHNICAL_CURVE_TEMPLATES: dict[str, TechnicalTemplate] = {
    template.id: template
    for template in (
        TechnicalTemplate("ARC_LOW", "Low arc", (0.33, 0.12), (0.66, 0.12)),
        TechnicalTemplate("ARC_MED", "Medium arc", (0.33, 0.25), (0.66, 0.25)),
        TechnicalTemplate("ARC_HIGH", "High arc", (0.33, 0.42), (0.66, 0.42)),
        TechnicalTemplate("S_SOFT", "Soft S", (0.25, 0.25), (0.75, -0.25)),
        TechnicalTemplate("S_MED", "Medium S", (0.23, 0.32), (0.77, -0.32)),
        TechnicalTemplate("EASE_IN", "Ease in", (0.12, 0.0), (0.78, 0.22)),
        TechnicalTemplate("EASE_IN_OUT", "Ease in/out", (0.2, 0.18), (0.8, 0.18)),
        TechnicalTemplate("QUARTER_CIRCLE", "Quarter circle", (0.0, 0.55), (1.0, 0.55)),
        TechnicalTemplate("HOOK_LIGHT", "Light hook", (0.12, 0.0), (0.55, 0.55)),
        TechnicalTemplate("HOOK_MED", "Medium hook", (0.1, 0.0), (0.5, 0.75)),
        TechnicalTemplate("HOOK_STRONG", "Strong hook", (0.1, 0.0), (0.45, 0.9)),
        TechnicalTemplate("HOOK_STRONG_ARC_HIGH", "Deep hook", (0.08, 0.02), (0.42, 1.12)),
        TechnicalTemplate("ARC_ASYM_IN", "Asymmetric arc (in)", (0.28, 0.34), (0.72, 0.18)),
        TechnicalTemplate("ARC_ASYM_OUT", "Asymmetric arc (out)", (0.28, 0.18), (0.72, 0.34)),
    )
}


def _preset(preset_id: str, label: str, category: CurveCategory, technical_id: str) -> SemanticPreset:
    return SemanticPreset(id=preset_id, label=label, category=category, technical_id=technical_id)


SEMANTIC_CURVE_PRESETS: tuple[SemanticPreset, ...] = (
    _preset("CAVA_FRENTE_CLASSICA", "Classic front armhole", CurveCategory.CAVA, "ARC_ASYM_IN"),
    _preset("CAVA_COSTAS_CLASSICA", "Classic back armhole", CurveCategory.CAVA, "ARC_ASYM_OUT"),
    _preset("CAVA_ANATOMICA", "Anatomical armhole", CurveCategory.CAVA, "S_SOFT"),
    _preset("CAVA_CAVADA", "Deep-cut armhole", CurveCategory.CAVA, "ARC_HIGH"),
    _preset("CAVA_RETA", "Straight armhole", CurveCategory.CAVA, "ARC_LOW"),
    _preset("CAVA_ESPORTIVA", "Sport armhole", CurveCategory.CAVA, "S_MED"),
    _preset("CURVA_DE_BUSTO", "Bust curve", CurveCategory.BUSTO, "ARC_MED"),
    _preset("PENCE_DE_BUSTO", "Bust dart", CurveCategory.BUSTO, "ARC_ASYM_OUT"),
    _preset("RECORTE_PRINCESA_BUSTO", "Princess seam (bust)", CurveCategory.BUSTO, "S_SOFT"),
    _preset("RECORTE_ANATOMICO", "Anatomical seam", CurveCategory.BUSTO, "S_MED"),
    _preset("TRANSPASSE_ANATOMICO", "Anatomical wrap", CurveCategory.BUSTO, "ARC_ASYM_IN"),
    _preset("GANCHO_FRENTE", "Front crotch", CurveCategory.GANCHO, "HOOK_LIGHT"),
    _preset("GANCHO_COSTAS", "Back crotch", CurveCategory.GANCHO, "HOOK_STRONG"),
    _preset("GANCHO_ANATOMICO", "Anatomical crotch", CurveCategory.GANCHO, "HOOK_MED"),
    _preset("GANCHO_RETO", "Straight crotch", CurveCategory.GANCHO, "EASE_IN"),
    _preset("GANCHO_PROFUNDO", "Deep crotch", CurveCategory.GANCHO, "HOOK_STRONG_ARC_HIGH"),
    _preset("CURVA_DE_CINTURA", "Waist curve", CurveCategory.CINTURA, "ARC_LOW"),
    _preset("CINTURA_ANATOMICA", "Anatomical waist", CurveCategory.CINTURA, "ARC_MED"),
    _preset("CURVA_DE_QUADRIL", "Hip curve", CurveCategory.QUADRIL, "ARC_HIGH"),
    _preset("QUADRIL_SUAVE", "Soft hip", CurveCategory.QUADRIL, "ARC_MED"),
    _preset("QUADRIL_ESTRUTURADO", "Structured hip", CurveCategory.QUADRIL, "ARC_HIGH"),
    _preset("DECOTE_REDONDO", "Round neckline", CurveCategory.DECOTE, "ARC_MED"),
    _preset("DECOTE_U", "U neckline", CurveCategory.DECOTE, "ARC_HIGH"),
    _preset("DECOTE_CARECA", "Crew neckline", CurveCategory.DECOTE, "ARC_LOW"),
    _preset("DECOTE_V", "V neckline", CurveCategory.DECOTE, "EASE_IN_OUT"),
    _preset("DECOTE_CANOA", "Boat neckline", CurveCategory.DECOTE, "ARC_LOW"),
    _preset("DECOTE_ASSIMETRICO", "Asymmetric neckline", CurveCategory.DECOTE, "ARC_ASYM_IN"),
    _preset("DECOTE_ANATOMICO", "Anatomical neckline", CurveCategory.DECOTE, "S_SOFT"),
    _preset("CURVA_DE_OMBRO", "Shoulder curve", CurveCategory.OMBRO_GOLA, "ARC_LOW"),
    _preset("OMBRO_ANATOMICO", "Anatomical shoulder", CurveCategory.OMBRO_GOLA, "ARC_MED"),
    _preset("GOLA_CARECA", "Crew collar", CurveCategory.OMBRO_GOLA, "ARC_MED"),
    _preset("GOLA_REDONDA", "Round collar", CurveCategory.OMBRO_GOLA, "ARC_HIGH"),
    _preset("GOLA_ESTRUTURADA", "Structured collar", CurveCategory.OMBRO_GOLA, "QUARTER_CIRCLE"),
    _preset("BARRA_RETA", "Straight hem", CurveCategory.BARRA, "EASE_IN_OUT"),
    _preset("BARRA_ARREDONDADA", "Rounded hem", CurveCategory.BARRA, "ARC_MED"),
    _preset("BARRA_EVASE", "Flared hem", CurveCategory.BARRA, "ARC_HIGH"),
    _preset("BARRA_MULLETS", "Mullet hem", CurveCategory.BARRA, "ARC_ASYM_OUT"),
    _preset("BARRA_ANATOMICA", "Anatomical hem", CurveCategory.BARRA, "S_SOFT"),
)

_PRESETS_BY_ID = {preset.id: preset for preset in SEMANTIC_CURVE_PRESETS}

CATEGORY_LABELS: dict[CurveCategory, str] = {
    CurveCategory.CAVA: "Armholes",
    CurveCategory.BUSTO: "Bust and seams",
    CurveCategory.DECOTE: "Necklines",
    CurveCategory.OMBRO_GOLA: "Shoulders and collar",
    CurveCategory.GANCHO: "Crotch",
    CurveCategory.CINTURA: "Waist",
    CurveCategory.QUADRIL: "Hip",
    CurveCategory.BARRA: "Hems",
    CurveCategory.TECNICO: "Technical",
}


def get_preset(preset_id: str) -> SemanticPreset:
    try:
        return _PRESETS_BY_ID[preset_id]
    except KeyError:
        raise KeyError(f"Unknown curve preset {preset_id!r}.") from None


def presets_by_category() -> list[tuple[CurveCategory, str, tuple[SemanticPreset, ...]]]:
    """Presets grouped in menu order; every category is listed, even if empty."""

    return [
        (category, label, tuple(preset for preset in SEMANTIC_CURVE_PRESETS if preset.category is category))
        for category, label in CATEGORY_LABELS.items()
    ]


def transform_template_point(point: Point, params: CurveParams) -> Point:
    """Apply bias, height, flips and rotation to a normalised control point."""

    x = clamp(point[0] + params.bias * 0.2, 0.0, 1.0)
    y = point[1] * params.height
    if params.flip_x:
        x = 1.0 - x
    if params.flip_y:
        y = -y
    if params.rotation_deg != 0.0:
        rx, ry = rotate((x - 0.5, y), params.rotation_deg)
        x = rx + 0.5
        y = ry
    return (x, y)


def project_to_chord(start: Point, end: Point, point: Point) -> Point:
    """Map a normalised point onto the chord ``start -> end``."""

    base = sub(end, start)
    chord = length(base)
    if chord <= 1e-9:
        return start
    y_axis = scale(perp(scale(base, 1.0 / chord)), chord)
    return add(start, add(scale(base, point[0]), scale(y_axis, point[1])))


def _endpoint_ids(figure: Figure) -> tuple[str, str] | None:
    if not figure.edges or len(figure.nodes) < 2:
        return None
    degree = {node.id: 0 for node in figure.nodes}
    for edge in figure.edges:
        if edge.from_node in degree:
            degree[edge.from_node] += 1
        if edge.to_node in degree:
            degree[edge.to_node] += 1
    ends = [node.id for node in figure.nodes if degree[node.id] == 1]
    if len(ends) >= 2:
        return ends[0], ends[1]
    return figure.nodes[0].id, figure.nodes[-1].id


def _coerce_params(base: CurveParams, params: CurveParams | Mapping[str, Any] | None) -> CurveParams:
    if params is None:
        return base
    if isinstance(params, CurveParams):
        return params
    return replace(base, **dict(params))


def apply_curve_style(
    figure: Figure,
    preset_id: str,
    params: CurveParams | Mapping[str, Any] | None = None,
) -> Figure | None:
    """Re-synthesise an open curve figure from a named preset.

    The result always has exactly two nodes and one cubic edge; any manual
    shaping is discarded. Endpoint node ids and the edge id are kept so the
    figure's identity survives restyling. Returns ``None`` for figures that
    are not open curves.
    """

    preset = get_preset(preset_id)
    template = TECHNICAL_CURVE_TEMPLATES[preset.technical_id]
    if figure.kind is not FigureKind.CURVE or figure.closed:
        return None
    endpoints = _endpoint_ids(figure)
    if endpoints is None:
        return None
    nodes = figure.node_map()
    start_node = nodes.get(endpoints[0])
    end_node = nodes.get(endpoints[1])
    if start_node is None or end_node is None:
        return None

    resolved = _coerce_params(preset.default_params, params)
    start_world = figure_local_to_world(figure, start_node.position)
    end_world = figure_local_to_world(figure, end_node.position)

    normalised = (
        (0.0, 0.0),
        transform_template_point(template.p1, resolved),
        transform_template_point(template.p2, resolved),
        (1.0, 0.0),
    )
    p0, p1, p2, p3 = (
        world_to_figure_local(figure, project_to_chord(start_world, end_world, point)) for point in normalised
    )

    edge_id = figure.edges[0].id if figure.edges else new_id("edge")
    new_nodes = (
        Node(id=start_node.id, x=p0[0], y=p0[1], out_handle=p1, mode=NodeMode.SMOOTH),
        Node(id=end_node.id, x=p3[0], y=p3[1], in_handle=p2, mode=NodeMode.SMOOTH),
    )
    edge = Edge(id=edge_id, from_node=start_node.id, to_node=end_node.id, kind=EdgeKind.CUBIC)
    styled = StyledCurve(preset_id=preset.id, technical_id=preset.technical_id, params=resolved)
    logger.debug("Applied curve preset %s to %s", preset.id, figure.id)
    return replace(figure, nodes=new_nodes, edges=(edge,), closed=False, curve=styled)


def reapply_curve_style(figure: Figure, **changes: Any) -> Figure | None:
    """Re-run the figure's preset with updated parameters."""

    if not isinstance(figure.curve, StyledCurve):
        return None
    merged = replace(figure.curve.params, **changes)
    return apply_curve_style(figure, figure.curve.preset_id, merged)


def break_style_link(figure: Figure) -> Figure:
    """Turn a styled curve into a custom one that remembers its origin."""

    if not isinstance(figure.curve, StyledCurve):
        return figure
    derived = CustomCurve(derived_from=(figure.curve.preset_id, figure.curve.technical_id))
    return replace(figure, curve=derived)


__all__ = [
    "CATEGORY_LABELS",
    "CurveCategory",
    "SEMANTIC_CURVE_PRESETS",
    "SemanticPreset",
    "TECHNICAL_CURVE_TEMPLATES",
    "TechnicalTemplate",
    "apply_curve_style",
    "break_style_link",
    "get_preset",
    "presets_by_category",
    "project_to_chord",
    "reapply_curve_style",
    "transform_template_point",
]
