# -*- coding: utf-8 -*-
"""
Gas decomposition of a CO2e total into CO2, CH4 and N2O.

When the resolved factor publishes all three per-gas rates, each gas is
activity value x rate. Otherwise a fixed proportional split of the CO2e
total is applied (95% CO2, 3% CH4, 2% N2O by default). The split is an
estimation heuristic, not a physical derivation.

Categories without combustion byproducts (refrigerants are pure high-GWP
gases) can opt out of the split with ``split_non_combustion=False``, in
which case the whole CO2e is reported under CO2.
"""

from dataclasses import dataclass
from typing import Optional

from ghg_engine.calculation.factor_resolver import ResolvedFactor
from ghg_engine.config import EngineConfig

NON_COMBUSTION_CATEGORIES = frozenset({"refrigerant"})


@dataclass(frozen=True)
class GasBreakdown:
    """Per-gas masses in kg (CH4 and N2O as CO2e)"""
    co2: float
    ch4: float
    n2o: float
    estimated: bool

    @property
    def total(self) -> float:
        return self.co2 + self.ch4 + self.n2o


def has_combustion_byproducts(category: str) -> bool:
    return category not in NON_COMBUSTION_CATEGORIES


class GasSplitPolicy:
    """Category-aware policy for splitting CO2e into individual gases."""

    def __init__(self, config: EngineConfig):
        self.co2_share = config.fallback_co2_share
        self.ch4_share = config.fallback_ch4_share
        self.n2o_share = config.fallback_n2o_share
        self.split_non_combustion = config.split_non_combustion

    def decompose(
        self,
        category: str,
        value: float,
        co2e: float,
        factor: ResolvedFactor,
    ) -> GasBreakdown:
        """
        Split a CO2e total into gases.

        Args:
            category: Activity category
            value: Normalized activity value
            co2e: Total kg CO2e (value x factor)
            factor: Resolved factor, possibly with per-gas rates
        """
        if factor.has_gas_breakdown:
            return GasBreakdown(
                co2=value * factor.co2_per_unit,
                ch4=value * factor.ch4_per_unit,
                n2o=value * factor.n2o_per_unit,
                estimated=False,
            )

        if not self.split_non_combustion and not has_combustion_byproducts(category):
            return GasBreakdown(co2=co2e, ch4=0.0, n2o=0.0, estimated=False)

        return GasBreakdown(
            co2=co2e * self.co2_share,
            ch4=co2e * self.ch4_share,
            n2o=co2e * self.n2o_share,
            estimated=True,
        )


def decompose(
    category: str,
    value: float,
    co2e: float,
    factor: ResolvedFactor,
    config: Optional[EngineConfig] = None,
) -> GasBreakdown:
    """Decompose with a policy built from ``config`` (defaults when None)."""
    return GasSplitPolicy(config or EngineConfig()).decompose(category, value, co2e, factor)
