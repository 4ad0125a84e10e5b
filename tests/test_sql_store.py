"""
SQL Factor Store Tests

Runs the FactorStore contract against SQLite in memory.
"""

import dataclasses

import pytest

from ghg_engine.calculation import EmissionCalculator, FallbackStep
from ghg_engine.data.emission_factor_record import CustomEmissionFactor, EmissionFactor
from ghg_engine.data.factor_store import FactorQuery, InMemoryFactorStore
from ghg_engine.db import SQLFactorStore
from ghg_engine.exceptions import FactorStoreError


@pytest.fixture
def sql_store(fixture_factors, custom_factors):
    store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
    store.seed(fixture_factors, custom_factors)
    return store


class TestSQLFactorStore:
    """Lookup semantics match the in-memory store."""

    def test_seed_count(self, fixture_factors, custom_factors):
        store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
        assert store.seed(fixture_factors, custom_factors) == len(fixture_factors) + 1

    def test_reseed_is_idempotent(self, sql_store, fixture_factors):
        sql_store.seed(fixture_factors)
        query = FactorQuery(category="electricity", regions=("US",), unit="kgCO2e/kWh")

        assert len(sql_store.find_factors(query)) == 2

    def test_find_orders_by_year_desc(self, sql_store):
        query = FactorQuery(category="electricity", regions=("US",), unit="kgCO2e/kWh")
        factors = sql_store.find_factors(query)

        assert [f.year for f in factors] == [2024, 2023]
        assert factors[0].has_gas_breakdown
        assert not factors[1].has_gas_breakdown

    def test_inactive_excluded(self, sql_store):
        query = FactorQuery(category="electricity", regions=("DE",), unit="kgCO2e/kWh")
        assert sql_store.find_factors(query) == []

    def test_subcategory_and_year_filters(self, sql_store):
        query = FactorQuery(
            category="vehicle", regions=("US", "GLOBAL"), unit="kgCO2e/km",
            subcategory="car_diesel",
        )
        assert sql_store.find_factors(query) == []

        relaxed = FactorQuery(category="vehicle", regions=("US", "GLOBAL"), unit="kgCO2e/km")
        assert [f.co2e_per_unit for f in sql_store.find_factors(relaxed)] == [0.17]

    def test_records_round_trip(self, sql_store, fixture_factors):
        query = FactorQuery(category="lpg", regions=("GLOBAL",), unit="kgCO2e/liter")
        assert sql_store.find_factors(query) == [fixture_factors[6]]

    def test_custom_factor_scoped_to_organization(self, sql_store, custom_factors):
        assert sql_store.find_custom_factor("cf-ppa-1", "org-1") == custom_factors[0]
        assert sql_store.find_custom_factor("cf-ppa-1", "org-2") is None

    def test_list_factors(self, sql_store, store):
        assert sql_store.list_factors() == store.list_factors()
        assert {f.region for f in sql_store.list_factors(region="GB")} == {"GB", "GLOBAL"}

    def test_missing_tables(self):
        store = SQLFactorStore.from_url("sqlite:///:memory:")
        query = FactorQuery(category="electricity", regions=("US",), unit="kgCO2e/kWh")

        with pytest.raises(FactorStoreError) as exc_info:
            store.find_factors(query)

        assert exc_info.value.context["operation"] == "find_factors"
        assert exc_info.value.context["cause_type"] == "OperationalError"


class TestCalculatorOverSQL:
    """The engine is agnostic to the store backend."""

    def test_electricity_us(self, sql_store, make_record):
        result = EmissionCalculator(sql_store).calculate(make_record())

        assert result.co2e == pytest.approx(417.0)
        assert result.factor.fallback_step == FallbackStep.EXACT

    def test_same_provenance_as_in_memory(self, sql_store, store, make_record):
        record = make_record(activity_value=250, activity_unit="MWh")

        from_sql = EmissionCalculator(sql_store).calculate(record)
        from_memory = EmissionCalculator(store).calculate(record)

        assert from_sql.provenance_hash == from_memory.provenance_hash

    def test_bundled_registry_seeds(self, make_record):
        bundled = InMemoryFactorStore.default()
        store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
        store.seed(bundled.list_factors())

        assert len(store.list_factors()) == len(bundled.list_factors())
        assert EmissionCalculator(store).calculate(make_record()).co2e == pytest.approx(417.0)


class TestSchemaKeys:
    """Table keys match the record keys of the in-memory store."""

    @pytest.fixture
    def versions(self):
        active = EmissionFactor(
            category="electricity", subcategory="grid", region="US",
            unit="kgCO2e/kWh", year=2024, co2e_per_unit=0.417, source="EPA",
        )
        retired = EmissionFactor(
            category="electricity", subcategory="grid", region="US",
            unit="kgCO2e/kWh", year=2024, co2e_per_unit=0.400, source="EPA",
            is_active=False,
        )
        return [active, retired]

    def test_retired_version_beside_active(self, versions):
        store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
        assert store.seed(versions) == 2

        query = FactorQuery(
            category="electricity", regions=("US",), unit="kgCO2e/kWh", year=2024,
        )
        expected = InMemoryFactorStore(versions).find_factors(query)

        assert [f.co2e_per_unit for f in store.find_factors(query)] == [0.417]
        assert store.find_factors(query) == expected

    def test_retired_version_with_explicit_ids(self, versions):
        store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
        store.seed([
            dataclasses.replace(versions[0], factor_id="ef-2024-v2"),
            dataclasses.replace(versions[1], factor_id="ef-2024-v1"),
        ])

        query = FactorQuery(category="electricity", regions=("US",), unit="kgCO2e/kWh")
        assert [f.factor_id for f in store.find_factors(query)] == ["ef-2024-v2"]

    def test_two_active_versions_rejected(self, versions):
        store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
        duplicate = dataclasses.replace(versions[0], co2e_per_unit=0.5, factor_id="other")

        with pytest.raises(FactorStoreError):
            store.seed([versions[0], duplicate])

    def test_same_custom_id_in_two_organizations(self):
        customs = [
            CustomEmissionFactor(
                factor_id="cf-1", organization_id=org, category="electricity",
                unit="kgCO2e/kWh", co2e_per_unit=value, source="Utility",
            )
            for org, value in (("org-1", 0.1), ("org-2", 0.2))
        ]
        store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
        store.seed([], customs)

        assert store.find_custom_factor("cf-1", "org-1").co2e_per_unit == 0.1
        assert store.find_custom_factor("cf-1", "org-2").co2e_per_unit == 0.2
