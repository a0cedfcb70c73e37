from __future__ import annotations

from typing import Dict

from billingcore.pricing.models import MeasurementUnit

METERS_PER_FOOT = 0.3048
CM_PER_METER = 100
MM_PER_METER = 1000
INCHES_PER_FOOT = 12

# factor to square metres for area units, to metres for linear units
CONVERSION_TO_BASE_UNIT: Dict[MeasurementUnit, float] = {
    MeasurementUnit.SQ_M: 1.0,
    MeasurementUnit.SQ_FT: METERS_PER_FOOT * METERS_PER_FOOT,
    MeasurementUnit.SQ_CM: (1 / CM_PER_METER) * (1 / CM_PER_METER),
    MeasurementUnit.SQ_MM: (1 / MM_PER_METER) * (1 / MM_PER_METER),
    MeasurementUnit.SQ_IN: (METERS_PER_FOOT / INCHES_PER_FOOT) * (METERS_PER_FOOT / INCHES_PER_FOOT),
    MeasurementUnit.M: 1.0,
    MeasurementUnit.CM: 1 / CM_PER_METER,
    MeasurementUnit.MM: 1 / MM_PER_METER,
    MeasurementUnit.FT: METERS_PER_FOOT,
    MeasurementUnit.IN: METERS_PER_FOOT / INCHES_PER_FOOT,
}

AREA_UNITS = tuple(u for u in MeasurementUnit if u.value.startswith("sq_"))


def is_area_unit(unit: MeasurementUnit) -> bool:
    return unit in AREA_UNITS


def convert_to_base_units(value: float, unit: MeasurementUnit | None) -> float:
    if unit is None:
        return value
    return value * CONVERSION_TO_BASE_UNIT.get(unit, 1.0)


def area_in_base_units(length: float, width: float, unit: MeasurementUnit) -> float:
    """
    Area of a length x width line in square metres.

    With an area unit on the line, length x width is taken in that unit.
    A missing dimension gives 0.
    """
    if is_area_unit(unit):
        return length * width * CONVERSION_TO_BASE_UNIT[unit]
    return convert_to_base_units(length, unit) * convert_to_base_units(width, unit)


def equivalent_prices(rate: float, unit: MeasurementUnit) -> Dict[MeasurementUnit, float]:
    """Same price expressed per every area unit; empty for linear units or non-positive rates."""
    if not is_area_unit(unit) or not rate or rate <= 0:
        return {}
    per_sq_m = rate / CONVERSION_TO_BASE_UNIT[unit]
    return {u: per_sq_m * CONVERSION_TO_BASE_UNIT[u] for u in AREA_UNITS}
