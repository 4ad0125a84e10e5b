# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

from typing import Any, Dict

import pytest

from ghg_engine.calculation import EmissionCalculator
from ghg_engine.config import EngineConfig, reset_config, set_config
from ghg_engine.data.emission_factor_record import CustomEmissionFactor, EmissionFactor
from ghg_engine.data.factor_store import InMemoryFactorStore
from ghg_engine.models import ActivityRecord


@pytest.fixture(autouse=True)
def engine_config():
    """Install a default configuration for every test and reset afterwards."""
    config = EngineConfig()
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def fixture_factors():
    """Small reference table covering every fallback step."""
    return [
        EmissionFactor(
            category="electricity", subcategory="grid", region="US",
            unit="kgCO2e/kWh", year=2024, co2e_per_unit=0.417,
            co2_per_unit=0.390, ch4_per_unit=0.012, n2o_per_unit=0.015,
            source="EPA",
        ),
        EmissionFactor(
            category="electricity", subcategory="grid", region="US",
            unit="kgCO2e/kWh", year=2023, co2e_per_unit=0.400,
            source="EPA",
        ),
        EmissionFactor(
            category="electricity", subcategory="grid", region="DE",
            unit="kgCO2e/kWh", year=2024, co2e_per_unit=0.366,
            source="UBA", is_active=False,
        ),
        EmissionFactor(
            category="natural_gas", subcategory="combustion", region="GLOBAL",
            unit="kgCO2e/kWh", year=2025, co2e_per_unit=0.184,
            source="DEFRA",
        ),
        EmissionFactor(
            category="refrigerant", subcategory="R-410A", region="GLOBAL",
            unit="kgCO2e/kg", year=2024, co2e_per_unit=2088.0,
            co2_per_unit=2088.0, source="IPCC",
        ),
        EmissionFactor(
            category="diesel", subcategory="combustion", region="US",
            unit="kgCO2e/liter", year=2024, co2e_per_unit=2.70,
            source="EPA",
        ),
        EmissionFactor(
            category="lpg", subcategory="combustion", region="GLOBAL",
            unit="kgCO2e/liter", year=2025, co2e_per_unit=1.56,
            co2_per_unit=1.54, ch4_per_unit=0.008, n2o_per_unit=0.012,
            source="DEFRA",
        ),
        EmissionFactor(
            category="vehicle", region="US",
            unit="kgCO2e/km", year=2024, co2e_per_unit=0.17,
            source="EPA",
        ),
        EmissionFactor(
            category="vehicle", subcategory="car_petrol", region="GB",
            unit="kgCO2e/km", year=2025, co2e_per_unit=0.16,
            source="DEFRA",
        ),
    ]


@pytest.fixture
def custom_factors():
    return [
        CustomEmissionFactor(
            factor_id="cf-ppa-1", organization_id="org-1",
            category="electricity", unit="kgCO2e/kWh",
            co2e_per_unit=0.1, source="Supplier PPA", name="Wind PPA",
        ),
    ]


@pytest.fixture
def store(fixture_factors, custom_factors):
    """In-memory fixture store."""
    return InMemoryFactorStore(fixture_factors, custom_factors)


@pytest.fixture
def calculator(store, engine_config):
    return EmissionCalculator(store, config=engine_config)


@pytest.fixture
def make_record():
    """Factory for ActivityRecord with sensible defaults."""
    def _make(**overrides: Any) -> ActivityRecord:
        data: Dict[str, Any] = {
            "activity_value": 1000,
            "activity_unit": "kWh",
            "category": "electricity",
            "subcategory": "grid",
            "region": "US",
            "year": 2024,
        }
        data.update(overrides)
        return ActivityRecord(**data)
    return _make
