# -*- coding: utf-8 -*-
"""
Core Emission Calculation Engine

GUARANTEES:
- 100% deterministic (same input + same factor store -> same output)
- Full provenance tracking with SHA-256 hashing (no timestamps hashed)
- Fail loudly on a missing factor; never default to zero emissions

Calculation steps:
1. Normalize the activity quantity to its canonical unit
2. Resolve the factor: custom factor first (when an id and organization are
   given), otherwise the reference-table fallback chain
3. co2e = normalized value x factor
4. Decompose CO2e into CO2, CH4 and N2O
5. Render the calculation method and the methodology audit trail
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ghg_engine.calculation.factor_resolver import FactorResolver, ResolvedFactor
from ghg_engine.calculation.gas_decomposition import GasSplitPolicy
from ghg_engine.calculation.methodology import MethodologyExplainer, format_number
from ghg_engine.calculation.unit_normalizer import (
    NormalizedActivity,
    UnitNormalizer,
    map_to_factor_unit,
)
from ghg_engine.config import EngineConfig, get_config
from ghg_engine.data.factor_store import FactorStore
from ghg_engine.exceptions import NoFactorFoundError, UnitNotRecognizedError
from ghg_engine.metrics import MetricsCollector
from ghg_engine.models import ActivityRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculationResult:
    """
    Complete calculation result with provenance.

    IMMUTABLE: frozen once created
    REPRODUCIBLE: carries the input, normalized activity and factor used
    AUDITABLE: SHA-256 hash over input, factor and outputs

    All masses are kilograms; ch4 and n2o are expressed as CO2e.
    """
    record: ActivityRecord
    co2e: float
    co2: float
    ch4: float
    n2o: float
    emission_factor: float
    emission_factor_source: str
    calculation_method: str
    methodology: str
    normalized: NormalizedActivity
    factor: ResolvedFactor
    gas_split_estimated: bool = False
    provenance_hash: str = field(default="", compare=False)

    def __post_init__(self):
        if not self.provenance_hash:
            object.__setattr__(self, "provenance_hash", self._calculate_provenance_hash())

    def _provenance_data(self) -> Dict[str, Any]:
        return {
            "input": self.record.model_dump(mode="json"),
            "normalized": self.normalized.to_dict(),
            "factor": self.factor.to_dict(),
            "outputs": {
                "co2e": self.co2e,
                "co2": self.co2,
                "ch4": self.ch4,
                "n2o": self.n2o,
                "calculation_method": self.calculation_method,
                "methodology": self.methodology,
            },
        }

    def _calculate_provenance_hash(self) -> str:
        """
        SHA-256 of the sorted-key JSON of input, factor and outputs.

        - Same inputs -> Same hash
        - Tampered data -> Invalid hash
        """
        provenance_str = json.dumps(self._provenance_data(), sort_keys=True)
        return hashlib.sha256(provenance_str.encode()).hexdigest()

    def verify_provenance(self) -> bool:
        """True if the stored hash matches the result's contents."""
        return self.provenance_hash == self._calculate_provenance_hash()

    @property
    def co2e_tonnes(self) -> float:
        return self.co2e / 1000

    @property
    def category(self) -> str:
        return self.record.category

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "input": self.record.model_dump(mode="json"),
            "co2e": self.co2e,
            "co2": self.co2,
            "ch4": self.ch4,
            "n2o": self.n2o,
            "emission_factor": self.emission_factor,
            "emission_factor_source": self.emission_factor_source,
            "calculation_method": self.calculation_method,
            "methodology": self.methodology,
            "normalized": self.normalized.to_dict(),
            "factor": self.factor.to_dict(),
            "gas_split_estimated": self.gas_split_estimated,
            "provenance_hash": self.provenance_hash,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON"""
        return json.dumps(self.to_dict(), indent=indent)


class EmissionCalculator:
    """
    Deterministic emission calculator over a factor store.

    The calculator holds no mutable state beyond its collaborators, so one
    instance can serve concurrent callers without locking. The factor
    store read is the only blocking point.
    """

    def __init__(
        self,
        store: FactorStore,
        config: Optional[EngineConfig] = None,
        normalizer: Optional[UnitNormalizer] = None,
    ):
        """
        Initialize emission calculator.

        Args:
            store: Read-only factor store
            config: Engine configuration (process-wide config if None)
            normalizer: Unit normalizer (default tables if None)
        """
        self.config = config or get_config()
        self.normalizer = normalizer or UnitNormalizer()
        self.resolver = FactorResolver(store, enable_metrics=self.config.enable_metrics)
        self.gas_policy = GasSplitPolicy(self.config)
        self.explainer = MethodologyExplainer(self.config.methodology_precision)

    def normalize(self, record: ActivityRecord) -> NormalizedActivity:
        """
        Normalize an activity record's quantity.

        Raises:
            UnitNotRecognizedError: Unit passed through and strict_units is on
        """
        normalized = self.normalizer.normalize(
            record.activity_value, record.activity_unit, record.category
        )
        if normalized.is_passthrough and self.config.strict_units:
            raise UnitNotRecognizedError(
                value=record.activity_value,
                unit=normalized.unit,
                category=record.category,
                supported_units=self.normalizer.supported_units(record.category),
            )
        return normalized

    def resolve_factor(
        self,
        record: ActivityRecord,
        normalized: NormalizedActivity,
        organization_id: Optional[str] = None,
    ) -> ResolvedFactor:
        """
        Resolve the factor for a normalized activity.

        A custom factor takes precedence when both its id and the
        organization are given. An unknown custom id falls through to the
        reference table.

        Raises:
            NoFactorFoundError: Every fallback step was exhausted
        """
        factor = None
        if record.custom_factor_id and organization_id:
            factor = self.resolver.resolve_custom(
                record.custom_factor_id, organization_id, record.year
            )

        if factor is None:
            factor = self.resolver.resolve(
                category=record.category,
                subcategory=record.subcategory,
                region=record.region,
                unit=map_to_factor_unit(normalized.unit, record.category),
                year=record.year,
            )

        if factor is None:
            raise NoFactorFoundError(
                category=record.category,
                subcategory=record.subcategory,
                region=record.region,
                unit=normalized.unit,
                context={"year": record.year},
            )
        return factor

    def calculate(
        self,
        record: ActivityRecord,
        organization_id: Optional[str] = None,
    ) -> CalculationResult:
        """
        Calculate emissions for one activity record.

        Args:
            record: Validated activity record
            organization_id: Organization scope for custom factor lookup

        Returns:
            CalculationResult with gas split, methodology and provenance hash

        Raises:
            NoFactorFoundError: No factor could be resolved
            UnitNotRecognizedError: Unrecognized unit with strict_units on
            FactorStoreError: The factor store read failed
        """
        start = time.perf_counter()
        try:
            normalized = self.normalize(record)
            factor = self.resolve_factor(record, normalized, organization_id)
        except Exception:
            MetricsCollector.record_calculation(
                record.category, "failed", self.config.enable_metrics
            )
            raise

        co2e = normalized.value * factor.value
        gases = self.gas_policy.decompose(record.category, normalized.value, co2e, factor)

        precision = self.config.method_precision
        result = CalculationResult(
            record=record,
            co2e=co2e,
            co2=gases.co2,
            ch4=gases.ch4,
            n2o=gases.n2o,
            emission_factor=factor.value,
            emission_factor_source=f"{factor.source} ({factor.year})",
            calculation_method=(
                f"{format_number(factor.value)} {factor.unit} × "
                f"{normalized.value:.{precision}f} {normalized.unit}"
            ),
            methodology=self.explainer.explain(record, normalized, factor, co2e),
            normalized=normalized,
            factor=factor,
            gas_split_estimated=gases.estimated,
        )

        duration = time.perf_counter() - start
        enabled = self.config.enable_metrics
        MetricsCollector.record_calculation(record.category, "completed", enabled)
        MetricsCollector.record_emissions(record.category, co2e, enabled)
        MetricsCollector.observe_duration("single_calculation", duration, enabled)

        logger.info(
            "Calculation completed: %s %s %s -> %.4f kg CO2e (factor %s, step %s, %.2fms)",
            record.category, record.activity_value, record.activity_unit,
            co2e, factor.factor_id, factor.fallback_step.value, duration * 1000,
        )
        return result
