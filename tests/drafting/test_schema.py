"""Bundled schemas accept what the engines emit and reject malformed input."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from drafting.darts import insert_dart
from drafting.figure import Figure
from drafting.schema import (
    SchemaValidationError,
    load_payload,
    load_schema,
    validate_figure_payload,
    validate_settings_payload,
)
from drafting.shapes import make_curve, make_rect
from drafting.styled_curves import apply_curve_style


@pytest.fixture()
def darted_rect() -> Figure:
    figure = insert_dart(make_rect(10.0, 10.0), 0.625, depth=3.0, left_width=1.0)
    assert figure is not None
    return figure


def test_schemas_load_as_mappings() -> None:
    """Bundled schemas load as mappings."""

    assert load_schema()["title"] == "Drafting figure"
    assert load_schema("settings.yaml")["additionalProperties"] is False


def test_missing_schema_raises() -> None:
    """An unknown schema name raises ``FileNotFoundError``."""

    with pytest.raises(FileNotFoundError):
        load_schema("nope.yaml")


def test_engine_output_validates(darted_rect: Figure) -> None:
    """Engine output validates against the figure schema."""

    styled = apply_curve_style(make_curve((0.0, 0.0), (50.0, 10.0)), "DECOTE_U")

    validate_figure_payload(darted_rect.to_mapping())
    validate_figure_payload(styled.to_mapping())


def test_figures_round_trip_through_mappings(darted_rect: Figure) -> None:
    """Figures survive a trip through their mappings."""

    styled = apply_curve_style(make_curve((0.0, 0.0), (50.0, 10.0)), "DECOTE_U")

    assert Figure.from_mapping(darted_rect.to_mapping()) == darted_rect
    assert Figure.from_mapping(styled.to_mapping()) == styled


def test_missing_id_is_reported() -> None:
    """A payload without an id fails validation."""

    payload = make_rect(1.0, 1.0).to_mapping()
    del payload["id"]

    with pytest.raises(SchemaValidationError) as excinfo:
        validate_figure_payload(payload)

    assert excinfo.value.errors
    assert "'id' is a required property" in str(excinfo.value)


def test_errors_name_their_location() -> None:
    """Validation errors name the failing location."""

    payload = make_rect(1.0, 1.0).to_mapping()
    payload["edges"][0]["kind"] = "spline"

    with pytest.raises(SchemaValidationError, match=r"\[edges / 0 / kind\]"):
        validate_figure_payload(payload)


def test_unknown_settings_are_rejected() -> None:
    """Unknown settings keys are rejected."""

    with pytest.raises(SchemaValidationError):
        validate_settings_payload({"path_steps": 10, "warp_factor": 9})


def test_load_payload_reads_json_and_yaml(tmp_path: Path) -> None:
    """Payload files load from either JSON or YAML."""

    json_path = tmp_path / "figure.json"
    json_path.write_text(json.dumps({"id": "a", "kind": "line"}), encoding="utf-8")
    yaml_path = tmp_path / "figure.yml"
    yaml_path.write_text("id: b\nkind: rect\n", encoding="utf-8")

    assert load_payload(json_path) == {"id": "a", "kind": "line"}
    assert load_payload(yaml_path) == {"id": "b", "kind": "rect"}
    with pytest.raises(ValueError):
        load_payload(tmp_path / "figure.txt")
