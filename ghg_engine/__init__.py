"""
GHG Emissions Calculation Engine

Deterministic conversion of activity data (kWh of electricity, liters of
fuel, km driven, kg of refrigerant) into greenhouse gas emissions in
kilograms of CO2-equivalent, with a per-gas split and a human-readable
methodology trail.

Components:
- UnitNormalizer: Activity units to canonical units per category family
- FactorResolver: Ordered fallback chain over a read-only factor store
- EmissionCalculator: Normalize, resolve, multiply, decompose, explain
- BatchCalculator: Error-isolated batch processing with scope summaries
- InMemoryFactorStore / SQLFactorStore: Reference factor storage

Example:
    >>> from ghg_engine import ActivityRecord, EmissionCalculator, InMemoryFactorStore
    >>> calculator = EmissionCalculator(InMemoryFactorStore.default())
    >>> result = calculator.calculate(ActivityRecord(
    ...     activity_value=1000, activity_unit="kWh",
    ...     category="electricity", subcategory="grid", region="US", year=2024,
    ... ))
    >>> round(result.co2e, 3)
    417.0
"""

from ghg_engine.calculation import (
    BatchCalculator,
    BatchResult,
    CalculationResult,
    EmissionCalculator,
    EmissionsSummary,
    FactorResolver,
    NormalizedActivity,
    ResolvedFactor,
    UnitNormalizer,
    map_to_factor_unit,
    normalize,
)
from ghg_engine.config import EngineConfig, get_config, reset_config, set_config
from ghg_engine.data import (
    CustomEmissionFactor,
    EmissionFactor,
    FactorQuery,
    FactorStore,
    InMemoryFactorStore,
)
from ghg_engine.exceptions import (
    GHGEngineException,
    NoFactorFoundError,
    UnitNotRecognizedError,
)
from ghg_engine.models import ActivityRecord, EmissionScope, category_scope

__all__ = [
    "ActivityRecord",
    "EmissionScope",
    "category_scope",
    "EmissionCalculator",
    "CalculationResult",
    "BatchCalculator",
    "BatchResult",
    "EmissionsSummary",
    "FactorResolver",
    "ResolvedFactor",
    "UnitNormalizer",
    "NormalizedActivity",
    "normalize",
    "map_to_factor_unit",
    "EmissionFactor",
    "CustomEmissionFactor",
    "FactorQuery",
    "FactorStore",
    "InMemoryFactorStore",
    "EngineConfig",
    "get_config",
    "set_config",
    "reset_config",
    "GHGEngineException",
    "NoFactorFoundError",
    "UnitNotRecognizedError",
]

__version__ = "1.0.0"
