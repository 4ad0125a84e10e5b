"""Reference emission factor data: records, stores and the bundled registry."""

from ghg_engine.data.emission_factor_record import (
    CUSTOM_REGION,
    GLOBAL_REGION,
    CustomEmissionFactor,
    EmissionFactor,
)
from ghg_engine.data.factor_store import (
    DEFAULT_REGISTRY_PATH,
    FactorQuery,
    FactorStore,
    InMemoryFactorStore,
    load_registry,
)

__all__ = [
    "CUSTOM_REGION",
    "GLOBAL_REGION",
    "CustomEmissionFactor",
    "EmissionFactor",
    "DEFAULT_REGISTRY_PATH",
    "FactorQuery",
    "FactorStore",
    "InMemoryFactorStore",
    "load_registry",
]
