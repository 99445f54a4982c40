"""Conversion between real-world lengths and abstract drawing units.

The engines only ever see drawing units; callers convert at the boundary.
One drawing unit is one CSS pixel at 96 DPI.
"""

from __future__ import annotations

from enum import Enum

PX_PER_IN = 96.0
PX_PER_CM = 37.7952755906
PX_PER_MM = PX_PER_CM / 10.0


class LengthUnit(str, Enum):
    CM = "cm"
    MM = "mm"
    IN = "in"
    PX = "px"


_SCALE = {
    LengthUnit.CM: PX_PER_CM,
    LengthUnit.MM: PX_PER_MM,
    LengthUnit.IN: PX_PER_IN,
    LengthUnit.PX: 1.0,
}


def to_units(value: float, unit: LengthUnit | str = LengthUnit.CM) -> float:
    return float(value) * _SCALE[LengthUnit(unit)]


def from_units(value: float, unit: LengthUnit | str = LengthUnit.CM) -> float:
    return float(value) / _SCALE[LengthUnit(unit)]


def cm_to_units(value: float) -> float:
    return to_units(value, LengthUnit.CM)


def units_to_cm(value: float) -> float:
    return from_units(value, LengthUnit.CM)


__all__ = [
    "LengthUnit",
    "PX_PER_CM",
    "PX_PER_IN",
    "PX_PER_MM",
    "cm_to_units",
    "from_units",
    "to_units",
    "units_to_cm",
]
