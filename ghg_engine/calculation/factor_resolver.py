# -*- coding: utf-8 -*-
"""
Emission Factor Resolution

Resolves the emission factor for an activity through a strict, ordered
fallback chain. The chain is expressed as data: ``FactorResolver.plan()``
returns the ordered list of (step, FactorQuery) pairs, and ``resolve()``
evaluates them in sequence, short-circuiting on the first match.

Fallback hierarchy:
1. exact                - category + subcategory (if given) + region + unit,
                          pinned to the requested year (if given)
2. global_region        - step 1 with region GLOBAL (skipped if the request
                          is already GLOBAL)
3. relaxed_subcategory  - subcategory ignored, region in {region, GLOBAL},
                          any year (only when a subcategory was given)

Within each step the latest factor year wins. No match means "not found";
the caller must treat that as a hard error, never as zero emissions.

Custom factors are resolved separately by (id, organization) and never
take part in the chain.
"""

import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ghg_engine.data.emission_factor_record import (
    GLOBAL_REGION,
    CustomEmissionFactor,
    EmissionFactor,
)
from ghg_engine.data.factor_store import FactorQuery, FactorStore
from ghg_engine.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class FallbackStep(str, Enum):
    """Which resolution path produced a factor"""
    EXACT = "exact"
    GLOBAL_REGION = "global_region"
    RELAXED_SUBCATEGORY = "relaxed_subcategory"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ResolvedFactor:
    """
    The factor the engine multiplies by, with how it was resolved.

    Custom factors carry no per-gas rates and report region "CUSTOM".
    """
    factor_id: str
    value: float
    unit: str
    source: str
    year: int
    region: str
    fallback_step: FallbackStep
    subcategory: Optional[str] = None
    co2_per_unit: Optional[float] = None
    ch4_per_unit: Optional[float] = None
    n2o_per_unit: Optional[float] = None
    is_custom: bool = False

    @property
    def has_gas_breakdown(self) -> bool:
        return (
            self.co2_per_unit is not None
            and self.ch4_per_unit is not None
            and self.n2o_per_unit is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        d = asdict(self)
        d['fallback_step'] = self.fallback_step.value
        return d

    @classmethod
    def from_standard(cls, factor: EmissionFactor, step: FallbackStep) -> "ResolvedFactor":
        return cls(
            factor_id=factor.factor_id,
            value=factor.co2e_per_unit,
            unit=factor.unit,
            source=factor.source,
            year=factor.year,
            region=factor.region,
            fallback_step=step,
            subcategory=factor.subcategory,
            co2_per_unit=factor.co2_per_unit,
            ch4_per_unit=factor.ch4_per_unit,
            n2o_per_unit=factor.n2o_per_unit,
        )

    @classmethod
    def from_custom(cls, factor: CustomEmissionFactor, year: int) -> "ResolvedFactor":
        """Custom factors have no publication year; the activity year is reported."""
        return cls(
            factor_id=factor.factor_id,
            value=factor.co2e_per_unit,
            unit=factor.unit,
            source=factor.source,
            year=year,
            region=factor.region,
            fallback_step=FallbackStep.CUSTOM,
            is_custom=True,
        )


class FactorResolver:
    """
    Emission factor resolver over a read-only FactorStore.

    Stateless apart from the store handle; safe to share between threads.
    """

    def __init__(self, store: FactorStore, enable_metrics: Optional[bool] = None):
        self.store = store
        # None defers to the process-wide config at record time
        self.enable_metrics = enable_metrics

    def plan(
        self,
        category: str,
        subcategory: Optional[str],
        region: str,
        unit: str,
        year: Optional[int] = None,
    ) -> List[Tuple[FallbackStep, FactorQuery]]:
        """
        Ordered fallback chain for a request.

        Args:
            category: Activity category
            subcategory: Optional subcategory
            region: Requested region
            unit: Reference-table unit string (e.g. "kgCO2e/kWh")
            year: Optional publication year to pin steps 1 and 2 to

        Returns:
            List of (step, query) in evaluation order
        """
        steps = [
            (FallbackStep.EXACT, FactorQuery(
                category=category,
                subcategory=subcategory,
                regions=(region,),
                unit=unit,
                year=year,
            )),
        ]

        if region != GLOBAL_REGION:
            steps.append((FallbackStep.GLOBAL_REGION, FactorQuery(
                category=category,
                subcategory=subcategory,
                regions=(GLOBAL_REGION,),
                unit=unit,
                year=year,
            )))

        if subcategory:
            regions = (region,) if region == GLOBAL_REGION else (region, GLOBAL_REGION)
            steps.append((FallbackStep.RELAXED_SUBCATEGORY, FactorQuery(
                category=category,
                subcategory=None,
                regions=regions,
                unit=unit,
            )))

        return steps

    def resolve(
        self,
        category: str,
        subcategory: Optional[str],
        region: str,
        unit: str,
        year: Optional[int] = None,
    ) -> Optional[ResolvedFactor]:
        """
        Resolve a standard emission factor through the fallback chain.

        Returns:
            ResolvedFactor, or None when every step is exhausted
        """
        for step, query in self.plan(category, subcategory, region, unit, year):
            logger.debug("Factor lookup step=%s query=%s", step.value, query.describe())
            matches = self.store.find_factors(query)
            if not matches:
                continue

            factor = matches[0]
            if step != FallbackStep.EXACT:
                logger.warning(
                    "Fallback step %s satisfied %s/%s in region %s with factor %s",
                    step.value, category, subcategory or "-", region, factor.factor_id,
                )
            MetricsCollector.record_factor_resolution(step.value, self.enable_metrics)
            return ResolvedFactor.from_standard(factor, step)

        MetricsCollector.record_factor_resolution("not_found", self.enable_metrics)
        logger.debug(
            "No factor for category=%s subcategory=%s region=%s unit=%s",
            category, subcategory, region, unit,
        )
        return None

    def resolve_custom(
        self,
        factor_id: str,
        organization_id: str,
        year: int,
    ) -> Optional[ResolvedFactor]:
        """Look up an organization-scoped custom factor by id."""
        custom = self.store.find_custom_factor(factor_id, organization_id)
        if custom is None:
            logger.warning(
                "Custom factor %s not found for organization %s",
                factor_id, organization_id,
            )
            return None
        MetricsCollector.record_factor_resolution(
            FallbackStep.CUSTOM.value, self.enable_metrics
        )
        return ResolvedFactor.from_custom(custom, year)

    def list_factors(
        self,
        category: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        """Active reference factors for preview callers (region filter admits GLOBAL)."""
        return self.store.list_factors(category=category, region=region)
