"""Engine-wide tunables loaded from YAML."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from .schema import load_payload, validate_settings_payload
from .units import PX_PER_CM

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Sampling resolutions and safety floors, all in drawing units."""

    path_steps: int = 30
    bbox_steps: int = 40
    circle_offset_steps: int = 60
    curve_offset_steps: int = 120
    per_edge_curve_steps: int = 80
    circle_base_samples: int = 64
    dart_min_depth: float = 0.2
    dart_min_half_width: float = 0.1
    dart_probe_distance: float = 0.5
    units_per_cm: float = PX_PER_CM

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "EngineSettings":
        validate_settings_payload(dict(payload))
        known = {item.name: item.type for item in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in payload.items():
            values[key] = int(value) if known[key] == "int" else float(value)
        return cls(**values)

    def to_mapping(self) -> dict[str, object]:
        return asdict(self)


DEFAULT_SETTINGS = EngineSettings()


def load_settings(path: Path | str | None) -> EngineSettings:
    """Load settings from a YAML/JSON file, falling back to defaults."""

    if path is None:
        return DEFAULT_SETTINGS
    path = Path(path)
    payload = load_payload(path) or {}
    if not isinstance(payload, Mapping):
        raise TypeError(f"Settings file {path} must decode to a mapping.")
    settings = EngineSettings.from_mapping(payload)
    logger.debug("Loaded engine settings from %s", path)
    return settings


__all__ = ["DEFAULT_SETTINGS", "EngineSettings", "load_settings"]
