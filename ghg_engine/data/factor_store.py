# -*- coding: utf-8 -*-
"""
ghg_engine/data/factor_store.py

Read-only factor store interface and its in-memory implementation.

The calculation engine receives a store handle rather than reaching into
process-wide state, so tests can run against a fixture store and
production can plug in the SQL-backed store from ``ghg_engine.db``.

Example:
    >>> store = InMemoryFactorStore.default()
    >>> query = FactorQuery(category="electricity", regions=("US",), unit="kgCO2e/kWh")
    >>> store.find_factors(query)[0].co2e_per_unit
    0.417
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from ghg_engine.config import EngineConfig, get_config
from ghg_engine.data.emission_factor_record import (
    GLOBAL_REGION,
    CustomEmissionFactor,
    EmissionFactor,
)
from ghg_engine.exceptions import ConfigurationError, FactorStoreError, InvalidFactorData

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).parent / "emission_factors_registry.yaml"


@dataclass(frozen=True)
class FactorQuery:
    """
    One lookup against the reference table.

    Attributes:
        category: Activity category (exact match)
        regions: Acceptable regions; a factor matches if its region is any of them
        unit: Reference-table unit string (exact match)
        subcategory: Exact subcategory match, or None to ignore subcategory
        year: Pin to this publication year, or None for any year
    """

    category: str
    regions: Tuple[str, ...]
    unit: str
    subcategory: Optional[str] = None
    year: Optional[int] = None

    def matches(self, factor: EmissionFactor) -> bool:
        """True when an active factor satisfies every constraint of the query."""
        if not factor.is_active:
            return False
        if factor.category != self.category:
            return False
        if factor.region not in self.regions:
            return False
        if factor.unit != self.unit:
            return False
        if self.subcategory is not None and factor.subcategory != self.subcategory:
            return False
        if self.year is not None and factor.year != self.year:
            return False
        return True

    def describe(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "subcategory": self.subcategory,
            "regions": list(self.regions),
            "unit": self.unit,
            "year": self.year,
        }


class FactorStore(ABC):
    """
    Read-only lookup against the reference-factor table.

    Implementations must return only active factors, ordered by year
    descending, and must not mutate state on read.
    """

    @abstractmethod
    def find_factors(self, query: FactorQuery) -> List[EmissionFactor]:
        """Return active factors matching the query, latest year first."""

    @abstractmethod
    def find_custom_factor(
        self,
        factor_id: str,
        organization_id: str,
    ) -> Optional[CustomEmissionFactor]:
        """Return one custom factor by id, scoped to the organization."""

    @abstractmethod
    def list_factors(
        self,
        category: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        """
        List active factors, optionally filtered.

        A region filter also admits GLOBAL factors. Results are ordered by
        category, region, then year descending.
        """


def _list_sort_key(factor: EmissionFactor):
    return (factor.category, factor.region, -factor.year)


class InMemoryFactorStore(FactorStore):
    """
    List-backed factor store.

    Ordering is deterministic: year descending, ties broken by insertion
    order, so identical stores always yield identical resolutions.
    """

    def __init__(
        self,
        factors: Optional[Iterable[EmissionFactor]] = None,
        custom_factors: Optional[Iterable[CustomEmissionFactor]] = None,
    ):
        self._factors: List[EmissionFactor] = list(factors or [])
        self._custom: Dict[Tuple[str, str], CustomEmissionFactor] = {}
        for custom in custom_factors or []:
            self._custom[(custom.factor_id, custom.organization_id)] = custom

    def __len__(self) -> int:
        return len(self._factors)

    def find_factors(self, query: FactorQuery) -> List[EmissionFactor]:
        matches = [f for f in self._factors if query.matches(f)]
        # sorted() is stable, so insertion order breaks year ties
        return sorted(matches, key=lambda f: f.year, reverse=True)

    def find_custom_factor(
        self,
        factor_id: str,
        organization_id: str,
    ) -> Optional[CustomEmissionFactor]:
        return self._custom.get((factor_id, organization_id))

    def list_factors(
        self,
        category: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        results = []
        for factor in self._factors:
            if not factor.is_active:
                continue
            if category and factor.category != category:
                continue
            if region and factor.region not in (region, GLOBAL_REGION):
                continue
            results.append(factor)
        return sorted(results, key=_list_sort_key)

    @property
    def custom_factors(self) -> List[CustomEmissionFactor]:
        return list(self._custom.values())

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "InMemoryFactorStore":
        """
        Load a store from a YAML registry file.

        Raises:
            FactorStoreError: If the file cannot be read or parsed
            InvalidFactorData: If a factor row is malformed
        """
        factors, custom = load_registry(path)
        store = cls(factors, custom)
        logger.info(
            "Loaded %d emission factors and %d custom factors from %s",
            len(factors), len(custom), path,
        )
        return store

    @classmethod
    def default(cls) -> "InMemoryFactorStore":
        """Store backed by the bundled reference registry."""
        return cls.from_yaml(DEFAULT_REGISTRY_PATH)

    @classmethod
    def from_config(cls, config: Optional[EngineConfig] = None) -> "InMemoryFactorStore":
        """
        Store for the configured registry path, or the bundled registry.

        Raises:
            ConfigurationError: If factor_registry_path points at no file
        """
        config = config or get_config()
        if not config.factor_registry_path:
            return cls.default()
        path = Path(config.factor_registry_path).expanduser()
        if not path.is_file():
            raise ConfigurationError(
                f"factor_registry_path does not exist: {path}",
                context={"factor_registry_path": str(path)},
            )
        return cls.from_yaml(path)


def load_registry(
    path: Union[str, Path],
) -> Tuple[List[EmissionFactor], List[CustomEmissionFactor]]:
    """
    Parse a YAML emission factor registry.

    Expected layout::

        metadata: {...}
        factors:
          - {category: ..., region: ..., unit: ..., co2e_per_unit: ..., ...}
        custom_factors:
          - {id: ..., organization_id: ..., ...}

    Returns:
        Tuple of (standard factors, custom factors)
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise FactorStoreError(
            f"Emission factor registry not found: {path}",
            operation="load_registry",
            cause=e,
        ) from e
    except yaml.YAMLError as e:
        raise FactorStoreError(
            f"Failed to parse emission factor registry: {path}",
            operation="load_registry",
            cause=e,
        ) from e

    if not isinstance(data, dict):
        raise InvalidFactorData(
            "Registry root must be a mapping", data_source=str(path)
        )

    factors = [EmissionFactor.from_dict(row) for row in data.get("factors") or []]
    custom = [
        CustomEmissionFactor.from_dict(row)
        for row in data.get("custom_factors") or []
    ]
    return factors, custom
