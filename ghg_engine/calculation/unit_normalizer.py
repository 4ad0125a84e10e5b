# -*- coding: utf-8 -*-
"""
Unit Normalization Engine

Converts an activity quantity reported in any accepted unit into the one
canonical unit of its category's unit family, so that it can be matched
against the reference factor table.

Unit families (canonical unit):
- Energy (kWh): electricity, natural_gas, district_heating, district_cooling
- Fuel volume (liter): diesel, gasoline, lpg, fuel_oil
- Distance (km): vehicle, air_travel
- Mass (kg): refrigerant, waste, coal, water

Unit aliases are case-sensitive. Natural gas additionally accepts volume
units (reported as m3), waste accepts tonnes and water accepts m3 as
already-canonical reporting units.

An unrecognized unit is NOT an error here: normalization passes the value
through unchanged with conversion_factor 1.0 and tags the result as
PASSTHROUGH so that callers can decide whether to reject it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class ConversionKind(str, Enum):
    """How a NormalizedActivity was produced"""
    CONVERTED = "converted"  # Scaled by a conversion factor != 1.0
    CANONICAL = "canonical"  # Recognized unit, no scaling needed
    PASSTHROUGH = "passthrough"  # Unrecognized unit, returned as supplied


class UnitFamily(str, Enum):
    """Unit family an activity category belongs to"""
    ENERGY = "energy"
    FUEL = "fuel"
    DISTANCE = "distance"
    MASS = "mass"


@dataclass(frozen=True)
class NormalizedActivity:
    """
    Activity quantity expressed in its category's canonical unit.

    Attributes:
        value: Quantity in ``unit``
        unit: Canonical unit (kWh, liter, km, kg, m3, tonne) or the supplied
            unit on passthrough
        conversion_factor: Multiplier applied to the original value (1.0 if
            no conversion occurred)
        original_value: Quantity as supplied
        original_unit: Unit as supplied
        kind: CONVERTED, CANONICAL or PASSTHROUGH
    """

    value: float
    unit: str
    conversion_factor: float
    original_value: float
    original_unit: str
    kind: ConversionKind

    @property
    def is_passthrough(self) -> bool:
        return self.kind == ConversionKind.PASSTHROUGH

    @property
    def was_converted(self) -> bool:
        return self.conversion_factor != 1.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "value": self.value,
            "unit": self.unit,
            "conversion_factor": self.conversion_factor,
            "original_value": self.original_value,
            "original_unit": self.original_unit,
            "kind": self.kind.value,
        }


class UnitNormalizer:
    """
    Deterministic, total unit normalizer.

    GUARANTEES:
    - Pure: no I/O, no state between calls
    - Total: returns a result for any unit string, never raises
    - Same input -> same output
    """

    # Volume conversions (to liters)
    TO_LITERS: Dict[str, float] = {
        'liters': 1.0,
        'liter': 1.0,
        'l': 1.0,
        'gallons': 3.78541,  # US gallon
        'gallon': 3.78541,
        'gal': 3.78541,
        'm3': 1000.0,
        'cubic meters': 1000.0,
    }

    # Energy conversions (to kWh)
    TO_KWH: Dict[str, float] = {
        'kWh': 1.0,
        'kwh': 1.0,
        'MWh': 1000.0,
        'mwh': 1000.0,
        'GJ': 277.778,
        'gj': 277.778,
        'therms': 29.3001,
        'therm': 29.3001,
        'BTU': 0.000293071,
        'btu': 0.000293071,
        'MMBTU': 293.071,
        'mmbtu': 293.071,
        'MCF': 293.071,  # 1 MCF natural gas ~ 1 MMBTU
    }

    # Distance conversions (to km)
    TO_KM: Dict[str, float] = {
        'km': 1.0,
        'kilometers': 1.0,
        'miles': 1.60934,
        'mile': 1.60934,
        'mi': 1.60934,
    }

    # Mass conversions (to kg)
    TO_KG: Dict[str, float] = {
        'kg': 1.0,
        'kilograms': 1.0,
        'tonnes': 1000.0,
        'tonne': 1000.0,
        'tons': 907.185,  # US short ton
        'ton': 907.185,
        'lbs': 0.453592,
        'lb': 0.453592,
        'pounds': 0.453592,
    }

    CATEGORY_FAMILIES: Dict[str, UnitFamily] = {
        'electricity': UnitFamily.ENERGY,
        'natural_gas': UnitFamily.ENERGY,
        'district_heating': UnitFamily.ENERGY,
        'district_cooling': UnitFamily.ENERGY,
        'diesel': UnitFamily.FUEL,
        'gasoline': UnitFamily.FUEL,
        'lpg': UnitFamily.FUEL,
        'fuel_oil': UnitFamily.FUEL,
        'vehicle': UnitFamily.DISTANCE,
        'air_travel': UnitFamily.DISTANCE,
        'refrigerant': UnitFamily.MASS,
        'waste': UnitFamily.MASS,
        'coal': UnitFamily.MASS,
        'water': UnitFamily.MASS,
    }

    CANONICAL_UNITS: Dict[UnitFamily, str] = {
        UnitFamily.ENERGY: 'kWh',
        UnitFamily.FUEL: 'liter',
        UnitFamily.DISTANCE: 'km',
        UnitFamily.MASS: 'kg',
    }

    # Units a category reports in natively; accepted without scaling
    NATURAL_UNITS: Dict[str, Dict[str, str]] = {
        'waste': {'tonnes': 'tonne', 'tonne': 'tonne'},
        'water': {'m3': 'm3'},
    }

    def __init__(self):
        self.conversion_tables = {
            UnitFamily.ENERGY: self.TO_KWH,
            UnitFamily.FUEL: self.TO_LITERS,
            UnitFamily.DISTANCE: self.TO_KM,
            UnitFamily.MASS: self.TO_KG,
        }

    def normalize(self, value: float, unit: str, category: str) -> NormalizedActivity:
        """
        Convert value to the canonical unit of the category's family.

        Args:
            value: Activity quantity
            unit: Unit as reported (case-sensitive, surrounding whitespace ignored)
            category: Activity category

        Returns:
            NormalizedActivity; PASSTHROUGH when the unit is not recognized
        """
        unit = unit.strip()
        family = self.CATEGORY_FAMILIES.get(category)

        natural = self.NATURAL_UNITS.get(category, {})
        if unit in natural:
            return self._result(value, natural[unit], 1.0, value, unit)

        if family is not None:
            factor = self.conversion_tables[family].get(unit)
            if factor is not None:
                return self._result(
                    value * factor, self.CANONICAL_UNITS[family], factor, value, unit
                )

        # Natural gas may also be metered by volume; report it in m3
        if category == 'natural_gas':
            liters = self.TO_LITERS.get(unit)
            if liters is not None:
                return self._result(
                    (value * liters) / 1000.0, 'm3', liters / 1000.0, value, unit
                )

        logger.warning(
            "Unit %r not recognized for category %r; passing through unconverted",
            unit, category,
        )
        return NormalizedActivity(
            value=value,
            unit=unit,
            conversion_factor=1.0,
            original_value=value,
            original_unit=unit,
            kind=ConversionKind.PASSTHROUGH,
        )

    @staticmethod
    def _result(
        value: float,
        unit: str,
        factor: float,
        original_value: float,
        original_unit: str,
    ) -> NormalizedActivity:
        kind = ConversionKind.CANONICAL if factor == 1.0 else ConversionKind.CONVERTED
        return NormalizedActivity(
            value=value,
            unit=unit,
            conversion_factor=factor,
            original_value=original_value,
            original_unit=original_unit,
            kind=kind,
        )

    def get_family(self, category: str) -> Optional[UnitFamily]:
        """Unit family for a category, or None for unknown categories."""
        return self.CATEGORY_FAMILIES.get(category)

    def supported_units(self, category: str) -> List[str]:
        """All unit aliases accepted for a category."""
        units: List[str] = list(self.NATURAL_UNITS.get(category, {}))
        family = self.CATEGORY_FAMILIES.get(category)
        if family is not None:
            units.extend(u for u in self.conversion_tables[family] if u not in units)
        if category == 'natural_gas':
            units.extend(u for u in self.TO_LITERS if u not in units)
        return units


# Reference-table unit strings per category and canonical unit
FACTOR_UNIT_MAP: Dict[str, Dict[str, str]] = {
    'electricity': {'kWh': 'kgCO2e/kWh'},
    'natural_gas': {
        'kWh': 'kgCO2e/kWh',
        'm3': 'kgCO2e/m3',
        'therm': 'kgCO2e/therm',
        'MCF': 'kgCO2e/MCF',
    },
    'diesel': {'liter': 'kgCO2e/liter', 'gallon': 'kgCO2e/gallon'},
    'gasoline': {'liter': 'kgCO2e/liter', 'gallon': 'kgCO2e/gallon'},
    'lpg': {'liter': 'kgCO2e/liter', 'gallon': 'kgCO2e/gallon'},
    'fuel_oil': {'liter': 'kgCO2e/liter', 'gallon': 'kgCO2e/gallon'},
    'vehicle': {'km': 'kgCO2e/km', 'mile': 'kgCO2e/mile'},
    'air_travel': {'km': 'kgCO2e/km'},
    'refrigerant': {'kg': 'kgCO2e/kg'},
    'coal': {'kg': 'kgCO2e/kg'},
    'waste': {'tonne': 'kgCO2e/tonne', 'kg': 'kgCO2e/kg'},
    'water': {'m3': 'kgCO2e/m3'},
    'district_heating': {'kWh': 'kgCO2e/kWh'},
    'district_cooling': {'kWh': 'kgCO2e/kWh'},
}


def map_to_factor_unit(unit: str, category: str) -> str:
    """
    Map a normalized unit to the reference table's unit-string convention.

    Example:
        >>> map_to_factor_unit("kWh", "electricity")
        'kgCO2e/kWh'
        >>> map_to_factor_unit("furlongs", "diesel")
        'kgCO2e/furlongs'
    """
    return FACTOR_UNIT_MAP.get(category, {}).get(unit) or f"kgCO2e/{unit}"


_default_normalizer = UnitNormalizer()


def normalize(value: float, unit: str, category: str) -> NormalizedActivity:
    """Normalize with the module-level UnitNormalizer."""
    return _default_normalizer.normalize(value, unit, category)
