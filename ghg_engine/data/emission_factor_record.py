# -*- coding: utf-8 -*-
"""
ghg_engine/data/emission_factor_record.py

Reference-data records consumed by the calculation engine.

- EmissionFactor: a row of the versioned, region/category-scoped reference
  table, optionally with a per-gas (CO2, CH4, N2O) breakdown.
- CustomEmissionFactor: an organization-scoped override, referenced
  explicitly by id. It never carries a per-gas breakdown and its region is
  always "CUSTOM".

Both records are read-only to the engine; they are created and updated by
an external seeding or administration process.

Example:
    >>> factor = EmissionFactor.from_dict({
    ...     "category": "electricity",
    ...     "subcategory": "grid",
    ...     "region": "US",
    ...     "unit": "kgCO2e/kWh",
    ...     "co2e_per_unit": 0.417,
    ...     "co2_per_unit": 0.390,
    ...     "ch4_per_unit": 0.012,
    ...     "n2o_per_unit": 0.015,
    ...     "source": "EPA",
    ...     "year": 2024,
    ... })
    >>> factor.factor_id
    'EF:US:electricity:grid:kgCO2e/kWh:EPA:2024'
    >>> factor.has_gas_breakdown
    True
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from ghg_engine.exceptions import InvalidFactorData

CUSTOM_REGION = "CUSTOM"
GLOBAL_REGION = "GLOBAL"

_REQUIRED_FIELDS = ("category", "region", "unit", "co2e_per_unit", "source", "year")

# Accept the camelCase spelling used by external seed files.
_FIELD_ALIASES = {
    "co2ePerUnit": "co2e_per_unit",
    "co2PerUnit": "co2_per_unit",
    "ch4PerUnit": "ch4_per_unit",
    "n2oPerUnit": "n2o_per_unit",
    "isActive": "is_active",
    "organizationId": "organization_id",
    "factorId": "factor_id",
}


def _canonical_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_FIELD_ALIASES.get(key, key): value for key, value in data.items()}


def _optional_rate(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    try:
        rate = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidFactorData(f"{key} is not a number: {value!r}", record=data) from e
    if not math.isfinite(rate):
        raise InvalidFactorData(f"{key} must be finite, got {value!r}", record=data)
    return rate


_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})


def _flag(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidFactorData(f"{key} is not a boolean: {value!r}", record=data)


@dataclass(frozen=True)
class EmissionFactor:
    """
    Standard reference emission factor.

    Key: (category, subcategory, region, unit, year). At most one active
    factor exists per full key.

    Attributes:
        factor_id: Unique identifier (derived from the key when not supplied)
        category: Activity category (electricity, diesel, refrigerant, ...)
        subcategory: Optional refinement (grid, combustion, R-410A, ...)
        region: ISO-like region code or "GLOBAL"
        unit: Reference-table unit string, e.g. "kgCO2e/kWh"
        year: Publication year of the factor
        co2e_per_unit: kg CO2e per unit of activity
        co2_per_unit: kg CO2 per unit (optional)
        ch4_per_unit: kg CO2e from CH4 per unit (optional)
        n2o_per_unit: kg CO2e from N2O per unit (optional)
        source: Publishing body (EPA, DEFRA, IPCC, ...)
        is_active: Only active factors participate in resolution
    """

    category: str
    region: str
    unit: str
    year: int
    co2e_per_unit: float
    source: str
    subcategory: Optional[str] = None
    co2_per_unit: Optional[float] = None
    ch4_per_unit: Optional[float] = None
    n2o_per_unit: Optional[float] = None
    is_active: bool = True
    factor_id: str = ""

    def __post_init__(self):
        if not self.factor_id:
            object.__setattr__(self, "factor_id", self._make_factor_id())

    def _make_factor_id(self) -> str:
        parts = [
            "EF",
            self.region,
            self.category,
            self.subcategory or "",
            self.unit,
            self.source,
            str(self.year),
        ]
        if not self.is_active:
            parts.append("inactive")
        return ":".join(p for p in parts if p)

    @property
    def has_gas_breakdown(self) -> bool:
        """True when all three per-gas rates are published."""
        return (
            self.co2_per_unit is not None
            and self.ch4_per_unit is not None
            and self.n2o_per_unit is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmissionFactor":
        """
        Create from dictionary (snake_case or camelCase keys).

        Raises:
            InvalidFactorData: If required fields are missing or not numeric
        """
        data = _canonical_keys(data)
        missing = [f for f in _REQUIRED_FIELDS if data.get(f) in (None, "")]
        if missing:
            raise InvalidFactorData(
                f"Emission factor is missing required fields: {', '.join(missing)}",
                record=data,
            )

        co2e = _optional_rate(data, "co2e_per_unit")
        try:
            year = int(data["year"])
        except (TypeError, ValueError) as e:
            raise InvalidFactorData(f"year is not an integer: {data['year']!r}", record=data) from e

        return cls(
            factor_id=str(data.get("factor_id") or data.get("id") or ""),
            category=str(data["category"]),
            subcategory=data.get("subcategory") or None,
            region=str(data["region"]),
            unit=str(data["unit"]),
            year=year,
            co2e_per_unit=co2e,
            co2_per_unit=_optional_rate(data, "co2_per_unit"),
            ch4_per_unit=_optional_rate(data, "ch4_per_unit"),
            n2o_per_unit=_optional_rate(data, "n2o_per_unit"),
            source=str(data["source"]),
            is_active=_flag(data, "is_active", True),
        )


@dataclass(frozen=True)
class CustomEmissionFactor:
    """
    Organization-specific emission factor override.

    Keyed by (factor_id, organization_id). Same shape as EmissionFactor minus
    the per-gas breakdown and the region, which is implicitly "CUSTOM".
    """

    factor_id: str
    organization_id: str
    category: str
    unit: str
    co2e_per_unit: float
    source: str
    name: str = ""

    @property
    def region(self) -> str:
        return CUSTOM_REGION

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        d = asdict(self)
        d["region"] = self.region
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomEmissionFactor":
        """Create from dictionary (snake_case or camelCase keys)."""
        data = _canonical_keys(data)
        factor_id = data.get("factor_id") or data.get("id")
        required = {
            "factor_id": factor_id,
            "organization_id": data.get("organization_id"),
            "category": data.get("category"),
            "unit": data.get("unit"),
            "co2e_per_unit": data.get("co2e_per_unit"),
            "source": data.get("source"),
        }
        missing = [k for k, v in required.items() if v in (None, "")]
        if missing:
            raise InvalidFactorData(
                f"Custom emission factor is missing required fields: {', '.join(missing)}",
                record=data,
            )

        return cls(
            factor_id=str(factor_id),
            organization_id=str(data["organization_id"]),
            category=str(data["category"]),
            unit=str(data["unit"]),
            co2e_per_unit=_optional_rate(data, "co2e_per_unit"),
            source=str(data["source"]),
            name=str(data.get("name") or ""),
        )
