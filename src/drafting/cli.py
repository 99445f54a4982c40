"""Command line access to the drafting engines.

Every command reads one figure from a JSON or YAML file, validates it
against the bundled schema, runs an engine and prints JSON to stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from .bounds import figure_world_bounding_box, union_bounding_box
from .darts import dart_geometries, insert_dart
from .figure import DartLink, DartSymmetry, Figure
from .figure_path import figure_local_to_world
from .logging_config import setup_logging
from .measures import compute_figure_measures
from .mirror import MirrorAxis, mirror_figure, unfold_figure
from .outer_loop import extract_outer_loop
from .schema import SchemaValidationError, load_payload, validate_figure_payload
from .seam import make_seam_figure
from .settings import EngineSettings, load_settings
from .styled_curves import apply_curve_style, presets_by_category
from .units import PX_PER_CM, LengthUnit, to_units

logger = logging.getLogger(__name__)

__all__ = ["build_parser", "load_figure", "main"]


def load_figure(path: Path) -> Figure:
    payload = load_payload(path)
    validate_figure_payload(payload)
    figure = Figure.from_mapping(payload)
    logger.debug("Loaded figure %s (%s) from %s", figure.id, figure.kind.value, path)
    return figure


def _length(value: float, unit: str, settings: EngineSettings) -> float:
    # drawing units are taken as given; only real-world lengths follow units_per_cm
    if LengthUnit(unit) is LengthUnit.PX:
        return to_units(value, unit)
    return to_units(value, unit) * settings.units_per_cm / PX_PER_CM


def _edge_offsets(items: Sequence[str], unit: str, settings: EngineSettings) -> dict[str, float]:
    offsets: dict[str, float] = {}
    for item in items:
        edge_id, sep, raw = item.partition("=")
        if not sep:
            raise ValueError(f"Edge offsets must look like EDGE_ID=VALUE, got {item!r}")
        offsets[edge_id.strip()] = _length(float(raw), unit, settings)
    return offsets


def _emit(payload: Any, output: Path | None) -> None:
    text = json.dumps(payload, indent=2, sort_keys=False)
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    logger.info("Wrote %s", output)


def _cmd_outline(args: argparse.Namespace, settings: EngineSettings) -> Any:
    figure = load_figure(args.figure)
    loop = extract_outer_loop(figure, settings.path_steps)
    if loop is None:
        return None
    points = loop.points if args.local else tuple(figure_local_to_world(figure, p) for p in loop.points)
    return {
        "figure_id": figure.id,
        "area": loop.area,
        "edges": [{"edge_id": edge_id, "forward": forward} for edge_id, forward in loop.edges],
        "points": [list(point) for point in points],
    }


def _cmd_seam(args: argparse.Namespace, settings: EngineSettings) -> Any:
    figure = load_figure(args.figure)
    if args.edge_offset:
        offset: Any = _edge_offsets(args.edge_offset, args.unit, settings)
    else:
        offset = _length(args.offset, args.unit, settings)
    seam = make_seam_figure(figure, offset, settings=settings)
    return seam.to_mapping() if seam is not None else None


def _cmd_bbox(args: argparse.Namespace, settings: EngineSettings) -> Any:
    figures = [load_figure(path) for path in args.figures]
    if len(figures) == 1:
        box = figure_world_bounding_box(figures[0], settings=settings)
    else:
        box = union_bounding_box(figures, settings=settings)
    return box.to_mapping() if box is not None else None


def _cmd_dart(args: argparse.Namespace, settings: EngineSettings) -> Any:
    figure = load_figure(args.figure)
    right = _length(args.right_width, args.unit, settings) if args.right_width is not None else None
    updated = insert_dart(
        figure,
        args.position,
        depth=_length(args.depth, args.unit, settings),
        left_width=_length(args.width, args.unit, settings),
        right_width=right,
        symmetry=DartSymmetry.ASYMMETRIC if right is not None else DartSymmetry.SYMMETRIC,
        link=DartLink(args.link),
        settings=settings,
    )
    if updated is None:
        return None
    result = updated.to_mapping()
    result["dart_geometry"] = [
        {
            "dart_id": geometry.dart_id,
            "left": list(geometry.left),
            "apex": list(geometry.apex),
            "right": list(geometry.right),
        }
        for geometry in dart_geometries(updated, settings=settings)
    ]
    return result


def _cmd_style(args: argparse.Namespace, settings: EngineSettings) -> Any:
    figure = load_figure(args.figure)
    params = {
        "height": args.height,
        "bias": args.bias,
        "flip_x": args.flip_x,
        "flip_y": args.flip_y,
        "rotation_deg": args.rotation,
    }
    styled = apply_curve_style(figure, args.preset, params)
    return styled.to_mapping() if styled is not None else None


def _cmd_presets(args: argparse.Namespace, settings: EngineSettings) -> Any:
    return [
        {
            "category": category.value,
            "label": label,
            "presets": [
                {"id": preset.id, "label": preset.label, "technical_id": preset.technical_id}
                for preset in presets
            ],
        }
        for category, label, presets in presets_by_category()
        if presets or args.all
    ]


def _cmd_measure(args: argparse.Namespace, settings: EngineSettings) -> Any:
    figure = load_figure(args.figure)
    return compute_figure_measures(figure).to_mapping()


def _cmd_mirror(args: argparse.Namespace, settings: EngineSettings) -> Any:
    figure = load_figure(args.figure)
    if args.unfold:
        if args.position is None:
            raise ValueError("--unfold requires --position.")
        result = unfold_figure(figure, args.axis, args.position)
    else:
        result = mirror_figure(figure, args.axis, args.position)
    return result.to_mapping() if result is not None else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="drafting", description="2D pattern drafting geometry engines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")
    parser.add_argument("--settings", type=Path, default=None, help="YAML/JSON engine settings")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Write JSON here instead of stdout")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def with_unit(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--unit",
            choices=[unit.value for unit in LengthUnit],
            default=LengthUnit.CM.value,
            help="Unit of length arguments (default: cm)",
        )

    outline = subparsers.add_parser("outline", help="Print the outer boundary of a figure")
    outline.add_argument("figure", type=Path)
    outline.add_argument("--local", action="store_true", help="Report points in the figure's local frame")
    outline.set_defaults(handler=_cmd_outline)

    seam = subparsers.add_parser("seam", help="Build a seam-allowance figure")
    seam.add_argument("figure", type=Path)
    seam.add_argument("--offset", type=float, default=1.0, help="Uniform allowance")
    seam.add_argument(
        "--edge-offset",
        action="append",
        default=[],
        metavar="EDGE_ID=VALUE",
        help="Per-edge allowance; repeat for several edges",
    )
    with_unit(seam)
    seam.set_defaults(handler=_cmd_seam)

    bbox = subparsers.add_parser("bbox", help="World bounding box of one or more figures")
    bbox.add_argument("figures", type=Path, nargs="+")
    bbox.set_defaults(handler=_cmd_bbox)

    dart = subparsers.add_parser("dart", help="Insert a dart into a closed figure, line or curve")
    dart.add_argument("figure", type=Path)
    dart.add_argument("--position", type=float, default=0.5, help="Fraction of the perimeter")
    dart.add_argument("--depth", type=float, default=5.0)
    dart.add_argument("--width", type=float, default=1.0, help="Half opening (left side)")
    dart.add_argument("--right-width", type=float, default=None, help="Right half opening; implies asymmetric")
    dart.add_argument("--link", choices=[link.value for link in DartLink], default=DartLink.FOLLOW.value)
    with_unit(dart)
    dart.set_defaults(handler=_cmd_dart)

    style = subparsers.add_parser("style", help="Apply a named curve preset to an open curve")
    style.add_argument("figure", type=Path)
    style.add_argument("--preset", required=True)
    style.add_argument("--height", type=float, default=1.0)
    style.add_argument("--bias", type=float, default=0.0)
    style.add_argument("--flip-x", action="store_true")
    style.add_argument("--flip-y", action="store_true")
    style.add_argument("--rotation", type=float, default=0.0, help="Degrees")
    style.set_defaults(handler=_cmd_style)

    presets = subparsers.add_parser("presets", help="List curve presets by category")
    presets.add_argument("--all", action="store_true", help="Include empty categories")
    presets.set_defaults(handler=_cmd_presets)

    measure = subparsers.add_parser("measure", help="Edge lengths and curve metrics")
    measure.add_argument("figure", type=Path)
    measure.set_defaults(handler=_cmd_measure)

    mirror = subparsers.add_parser("mirror", help="Mirror a figure or unfold a half pattern")
    mirror.add_argument("figure", type=Path)
    mirror.add_argument("--axis", choices=[axis.value for axis in MirrorAxis], default=MirrorAxis.VERTICAL.value)
    mirror.add_argument("--position", type=float, default=None, help="Axis coordinate in drawing units")
    mirror.add_argument("--unfold", action="store_true")
    mirror.set_defaults(handler=_cmd_mirror)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        settings = load_settings(args.settings)
        result = args.handler(args, settings)
    except (SchemaValidationError, KeyError, ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1

    if result is None:
        logger.warning("No geometry produced for %s", args.command)
        _emit(None, args.output)
        return 2
    _emit(result, args.output)
    return 0
