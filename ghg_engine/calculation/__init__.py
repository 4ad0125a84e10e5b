"""
Emission calculation pipeline

Components:
- UnitNormalizer: Deterministic unit normalization (with passthrough tagging)
- FactorResolver: Emission factor resolution with an ordered fallback chain
- GasSplitPolicy: CO2e decomposition into CO2, CH4, N2O
- MethodologyExplainer: Human-readable audit trail
- EmissionCalculator: Core calculation engine
- BatchCalculator: Batch processing and emissions summary
"""

from ghg_engine.calculation.unit_normalizer import (
    ConversionKind,
    NormalizedActivity,
    UnitFamily,
    UnitNormalizer,
    map_to_factor_unit,
    normalize,
)

from ghg_engine.calculation.factor_resolver import (
    FactorResolver,
    FallbackStep,
    ResolvedFactor,
)

from ghg_engine.calculation.gas_decomposition import (
    GasBreakdown,
    GasSplitPolicy,
    NON_COMBUSTION_CATEGORIES,
)

from ghg_engine.calculation.methodology import MethodologyExplainer, explain

from ghg_engine.calculation.core_calculator import (
    CalculationResult,
    EmissionCalculator,
)

from ghg_engine.calculation.batch_calculator import (
    BatchCalculator,
    BatchItem,
    BatchResult,
    CategoryTotal,
    EmissionsSummary,
)

__all__ = [
    # Normalization
    "ConversionKind",
    "NormalizedActivity",
    "UnitFamily",
    "UnitNormalizer",
    "map_to_factor_unit",
    "normalize",
    # Resolution
    "FactorResolver",
    "FallbackStep",
    "ResolvedFactor",
    # Gas split
    "GasBreakdown",
    "GasSplitPolicy",
    "NON_COMBUSTION_CATEGORIES",
    # Methodology
    "MethodologyExplainer",
    "explain",
    # Core
    "CalculationResult",
    "EmissionCalculator",
    # Batch
    "BatchCalculator",
    "BatchItem",
    "BatchResult",
    "CategoryTotal",
    "EmissionsSummary",
]
