"""Geometry engines for 2D garment pattern drafting."""

from __future__ import annotations

from importlib import import_module

__all__ = [
    "BoundingBox",
    "DEFAULT_SETTINGS",
    "Dart",
    "Edge",
    "EdgeKind",
    "EngineSettings",
    "Figure",
    "FigureKind",
    "Node",
    "NodeMode",
    "OuterLoop",
    "SchemaValidationError",
    "apply_curve_style",
    "compute_figure_measures",
    "extract_outer_loop",
    "figure_local_polyline",
    "figure_world_bounding_box",
    "insert_dart",
    "make_seam_figure",
    "mirror_figure",
    "offset_polygon",
    "remove_dart",
    "set_edge_length",
    "setup_logging",
    "unfold_figure",
]

_ATTRIBUTE_MODULES: dict[str, str] = {
    "BoundingBox": ".bounds",
    "DEFAULT_SETTINGS": ".settings",
    "Dart": ".figure",
    "Edge": ".figure",
    "EdgeKind": ".figure",
    "EngineSettings": ".settings",
    "Figure": ".figure",
    "FigureKind": ".figure",
    "Node": ".figure",
    "NodeMode": ".figure",
    "OuterLoop": ".outer_loop",
    "SchemaValidationError": ".schema",
    "apply_curve_style": ".styled_curves",
    "compute_figure_measures": ".measures",
    "extract_outer_loop": ".outer_loop",
    "figure_local_polyline": ".figure_path",
    "figure_world_bounding_box": ".bounds",
    "insert_dart": ".darts",
    "make_seam_figure": ".seam",
    "mirror_figure": ".mirror",
    "offset_polygon": ".offset",
    "remove_dart": ".darts",
    "set_edge_length": ".edge_ops",
    "setup_logging": ".logging_config",
    "unfold_figure": ".mirror",
}


def __getattr__(name: str):
    try:
        module_name = _ATTRIBUTE_MODULES[name]
    except KeyError as exc:
        raise AttributeError(f"module 'drafting' has no attribute {name!r}") from exc

    module = import_module(module_name, __name__)
    value = getattr(module, name)
    globals()[name] = value
    return value
