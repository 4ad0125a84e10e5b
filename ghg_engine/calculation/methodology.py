# -*- coding: utf-8 -*-
"""
Methodology Explainer

Renders the human-readable audit trail for one calculation. This text is
what a compliance reviewer inspects, so the line order is fixed:

1. Activity restated with category (and subcategory)
2. Unit conversion, only when a conversion factor other than 1.0 was applied
3. Emission factor with source, year and region
4. Multiplication producing kg CO2e
5. The same total in tonnes CO2e

Example:
    Activity: 100 therms of natural_gas
    Unit conversion: 100 therms → 2930.0100 kWh (factor: 29.3001)
    Emission factor: 0.184 kgCO2e/kWh (Source: DEFRA 2025, Region: GLOBAL)
    Calculation: 2930.0100 kWh × 0.184 kgCO2e/kWh = 539.1218 kgCO2e
    Total: 0.5391 tCO2e
"""

from typing import List, Optional

from ghg_engine.calculation.factor_resolver import ResolvedFactor
from ghg_engine.calculation.unit_normalizer import NormalizedActivity
from ghg_engine.models import ActivityRecord


def format_number(value: float) -> str:
    """
    Shortest plain rendering of a number: integral floats lose the ".0".

    >>> format_number(1000.0)
    '1000'
    >>> format_number(0.417)
    '0.417'
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class MethodologyExplainer:
    """Builds the ordered methodology lines for a calculation."""

    def __init__(self, precision: int = 4):
        self.precision = precision

    def _fixed(self, value: float) -> str:
        return f"{value:.{self.precision}f}"

    def lines(
        self,
        record: ActivityRecord,
        normalized: NormalizedActivity,
        factor: ResolvedFactor,
        co2e: float,
    ) -> List[str]:
        activity = (
            f"Activity: {format_number(record.activity_value)} {record.activity_unit} "
            f"of {record.category}"
        )
        if record.subcategory:
            activity += f" ({record.subcategory})"
        lines = [activity]

        if normalized.conversion_factor != 1.0:
            lines.append(
                f"Unit conversion: {format_number(record.activity_value)} "
                f"{record.activity_unit} → {self._fixed(normalized.value)} "
                f"{normalized.unit} (factor: {format_number(normalized.conversion_factor)})"
            )

        lines.append(
            f"Emission factor: {format_number(factor.value)} {factor.unit} "
            f"(Source: {factor.source} {factor.year}, Region: {factor.region})"
        )
        lines.append(
            f"Calculation: {self._fixed(normalized.value)} {normalized.unit} × "
            f"{format_number(factor.value)} {factor.unit} = {self._fixed(co2e)} kgCO2e"
        )
        lines.append(f"Total: {self._fixed(co2e / 1000)} tCO2e")
        return lines

    def explain(
        self,
        record: ActivityRecord,
        normalized: NormalizedActivity,
        factor: ResolvedFactor,
        co2e: float,
    ) -> str:
        """Methodology text, one step per line."""
        return "\n".join(self.lines(record, normalized, factor, co2e))


def explain(
    record: ActivityRecord,
    normalized: NormalizedActivity,
    factor: ResolvedFactor,
    co2e: float,
    precision: Optional[int] = None,
) -> str:
    return MethodologyExplainer(4 if precision is None else precision).explain(
        record, normalized, factor, co2e
    )
