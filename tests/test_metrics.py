"""Tests for Prometheus metric recording."""

import pytest
from prometheus_client import REGISTRY

from ghg_engine.calculation import EmissionCalculator, FactorResolver
from ghg_engine.config import EngineConfig, set_config
from ghg_engine.exceptions import NoFactorFoundError


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestCalculationMetrics:

    def test_completed_calculation(self, calculator, make_record):
        before = _sample("ghg_calculations_total", category="electricity", status="completed")
        emitted = _sample("ghg_emissions_kg_co2e_total", category="electricity")

        calculator.calculate(make_record())

        assert _sample(
            "ghg_calculations_total", category="electricity", status="completed"
        ) == before + 1
        assert _sample(
            "ghg_emissions_kg_co2e_total", category="electricity"
        ) == pytest.approx(emitted + 417.0)

    def test_failed_calculation(self, calculator, make_record):
        before = _sample("ghg_calculations_total", category="diesel", status="failed")
        not_found = _sample("ghg_factor_resolutions_total", step="not_found")

        with pytest.raises(NoFactorFoundError):
            calculator.calculate(make_record(category="diesel", region="XX", activity_unit="liters"))

        assert _sample("ghg_calculations_total", category="diesel", status="failed") == before + 1
        assert _sample("ghg_factor_resolutions_total", step="not_found") == not_found + 1

    def test_injected_config_disables_recording(self, store, make_record):
        """The calculator's own config wins over the process-wide one."""
        calculator = EmissionCalculator(store, config=EngineConfig(enable_metrics=False))
        before = _sample("ghg_calculations_total", category="electricity", status="completed")
        resolved = _sample("ghg_factor_resolutions_total", step="exact")

        calculator.calculate(make_record())

        assert _sample(
            "ghg_calculations_total", category="electricity", status="completed"
        ) == before
        assert _sample("ghg_factor_resolutions_total", step="exact") == resolved

    def test_injected_config_enables_recording(self, calculator, make_record):
        set_config(EngineConfig(enable_metrics=False))
        before = _sample("ghg_calculations_total", category="electricity", status="completed")

        calculator.calculate(make_record())

        assert _sample(
            "ghg_calculations_total", category="electricity", status="completed"
        ) == before + 1

    def test_standalone_resolver_follows_global_config(self, store):
        set_config(EngineConfig(enable_metrics=False))
        resolved = _sample("ghg_factor_resolutions_total", step="exact")

        FactorResolver(store).resolve("electricity", "grid", "US", "kgCO2e/kWh", 2024)

        assert _sample("ghg_factor_resolutions_total", step="exact") == resolved
