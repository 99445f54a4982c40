"""Utilities for validating drafting payloads against bundled schemas."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator, ValidationError

FIGURE_SCHEMA_NAME = "figure.yaml"
SETTINGS_SCHEMA_NAME = "settings.yaml"

__all__ = [
    "FIGURE_SCHEMA_NAME",
    "SETTINGS_SCHEMA_NAME",
    "SchemaValidationError",
    "load_payload",
    "load_schema",
    "validate_figure_payload",
    "validate_payload",
    "validate_settings_payload",
]


class SchemaValidationError(RuntimeError):
    """Raised when an instance fails schema validation."""

    def __init__(self, errors: Iterable[ValidationError]):
        self.errors = tuple(errors)
        message = "Schema validation failed:\n" + "\n".join(_format_error(e) for e in self.errors)
        super().__init__(message)


def _schema_dir() -> Path:
    return Path(__file__).resolve().parent / "schemas"


@lru_cache(maxsize=4)
def load_schema(name: str = FIGURE_SCHEMA_NAME) -> Mapping[str, Any]:
    """Load and cache a bundled schema definition by name."""

    schema_path = _schema_dir() / name
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema '{name}' not found at {schema_path}")

    with schema_path.open("r", encoding="utf-8") as handle:
        schema = yaml.safe_load(handle)

    if not isinstance(schema, Mapping):
        raise TypeError(f"Schema '{name}' must decode to a mapping, received {type(schema)!r}")
    return schema


def load_payload(path: Path) -> Any:
    """Load a JSON or YAML payload from disk."""

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as handle:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(handle)
        if suffix == ".json":
            return json.load(handle)
    raise ValueError(f"Unsupported payload extension '{suffix}' for {path}")


def validate_payload(instance: Any, *, schema_name: str) -> None:
    schema = load_schema(schema_name)
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda exc: [str(part) for part in exc.path])
    if errors:
        raise SchemaValidationError(errors)


def validate_figure_payload(instance: Any) -> None:
    """Validate *instance* against the figure schema."""

    validate_payload(instance, schema_name=FIGURE_SCHEMA_NAME)


def validate_settings_payload(instance: Any) -> None:
    """Validate *instance* against the engine settings schema."""

    validate_payload(instance, schema_name=SETTINGS_SCHEMA_NAME)


def _format_error(error: ValidationError) -> str:
    location = " / ".join(str(component) for component in error.absolute_path)
    prefix = f"[{location}] " if location else ""
    return f"{prefix}{error.message}"
