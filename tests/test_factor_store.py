"""
Factor Store and Record Tests

This test suite validates:
- EmissionFactor / CustomEmissionFactor parsing
- FactorQuery matching
- InMemoryFactorStore lookups and ordering
- YAML registry loading and error handling
"""

import pytest

from ghg_engine.config import EngineConfig
from ghg_engine.data.emission_factor_record import CustomEmissionFactor, EmissionFactor
from ghg_engine.data.factor_store import (
    DEFAULT_REGISTRY_PATH,
    FactorQuery,
    InMemoryFactorStore,
    load_registry,
)
from ghg_engine.exceptions import ConfigurationError, FactorStoreError, InvalidFactorData


class TestEmissionFactorRecord:
    """Reference factor records."""

    def test_from_dict_snake_case(self):
        factor = EmissionFactor.from_dict({
            "category": "electricity", "subcategory": "grid", "region": "US",
            "unit": "kgCO2e/kWh", "co2e_per_unit": 0.417, "co2_per_unit": 0.39,
            "ch4_per_unit": 0.012, "n2o_per_unit": 0.015, "source": "EPA", "year": 2024,
        })

        assert factor.factor_id == "EF:US:electricity:grid:kgCO2e/kWh:EPA:2024"
        assert factor.has_gas_breakdown
        assert factor.is_active

    def test_from_dict_camel_case(self):
        factor = EmissionFactor.from_dict({
            "id": "ef-1", "category": "diesel", "region": "GLOBAL",
            "unit": "kgCO2e/liter", "co2ePerUnit": "2.68", "source": "DEFRA",
            "year": "2025", "isActive": False,
        })

        assert factor.factor_id == "ef-1"
        assert factor.co2e_per_unit == 2.68
        assert factor.year == 2025
        assert not factor.is_active
        assert factor.subcategory is None

    def test_partial_gas_rates_are_not_a_breakdown(self):
        factor = EmissionFactor(
            category="refrigerant", region="GLOBAL", unit="kgCO2e/kg",
            year=2024, co2e_per_unit=2088.0, source="IPCC", co2_per_unit=2088.0,
        )
        assert not factor.has_gas_breakdown

    def test_zero_rate_counts_as_present(self):
        factor = EmissionFactor(
            category="electricity", region="SE", unit="kgCO2e/kWh", year=2024,
            co2e_per_unit=0.013, source="EEA",
            co2_per_unit=0.012, ch4_per_unit=0.0, n2o_per_unit=0.001,
        )
        assert factor.has_gas_breakdown

    def test_missing_required_fields(self):
        with pytest.raises(InvalidFactorData, match="co2e_per_unit"):
            EmissionFactor.from_dict({
                "category": "diesel", "region": "US", "unit": "kgCO2e/liter",
                "source": "EPA", "year": 2024,
            })

    def test_non_numeric_rate(self):
        with pytest.raises(InvalidFactorData):
            EmissionFactor.from_dict({
                "category": "diesel", "region": "US", "unit": "kgCO2e/liter",
                "co2e_per_unit": "lots", "source": "EPA", "year": 2024,
            })

    def test_to_dict_round_trip_keys(self):
        factor = EmissionFactor(
            category="water", region="GB", unit="kgCO2e/m3", year=2025,
            co2e_per_unit=0.149, source="DEFRA",
        )
        assert EmissionFactor.from_dict(factor.to_dict()) == factor

    @pytest.mark.parametrize("raw,expected", [
        ("false", False), ("FALSE", False), (" no ", False), ("0", False), (0, False),
        ("true", True), ("Yes", True), (1, True), (None, True),
    ])
    def test_is_active_text_values(self, raw, expected):
        factor = EmissionFactor.from_dict({
            "category": "diesel", "region": "US", "unit": "kgCO2e/liter",
            "co2e_per_unit": 2.7, "source": "EPA", "year": 2024, "isActive": raw,
        })
        assert factor.is_active is expected

    @pytest.mark.parametrize("raw", ["maybe", "", 2, 0.5])
    def test_is_active_unparseable(self, raw):
        with pytest.raises(InvalidFactorData, match="is_active"):
            EmissionFactor.from_dict({
                "category": "diesel", "region": "US", "unit": "kgCO2e/liter",
                "co2e_per_unit": 2.7, "source": "EPA", "year": 2024, "is_active": raw,
            })

    def test_retired_version_gets_distinct_id(self):
        fields = dict(
            category="electricity", subcategory="grid", region="US",
            unit="kgCO2e/kWh", year=2024, co2e_per_unit=0.417, source="EPA",
        )
        active = EmissionFactor(**fields)
        retired = EmissionFactor(**fields, is_active=False)

        assert active.factor_id == "EF:US:electricity:grid:kgCO2e/kWh:EPA:2024"
        assert retired.factor_id != active.factor_id


class TestCustomEmissionFactorRecord:
    """Organization-scoped records."""

    def test_region_is_custom(self):
        factor = CustomEmissionFactor.from_dict({
            "id": "cf-1", "organizationId": "org-1", "category": "electricity",
            "unit": "kgCO2e/kWh", "co2ePerUnit": 0.05, "source": "Green tariff",
        })

        assert factor.region == "CUSTOM"
        assert factor.to_dict()["region"] == "CUSTOM"

    def test_missing_organization(self):
        with pytest.raises(InvalidFactorData, match="organization_id"):
            CustomEmissionFactor.from_dict({
                "id": "cf-1", "category": "electricity", "unit": "kgCO2e/kWh",
                "co2e_per_unit": 0.05, "source": "Green tariff",
            })


class TestFactorQuery:
    """Query matching."""

    @pytest.fixture
    def factor(self):
        return EmissionFactor(
            category="vehicle", subcategory="van", region="GB",
            unit="kgCO2e/km", year=2025, co2e_per_unit=0.245, source="DEFRA",
        )

    def test_none_subcategory_does_not_filter(self, factor):
        query = FactorQuery(category="vehicle", regions=("GB",), unit="kgCO2e/km")
        assert query.matches(factor)

    def test_subcategory_must_match(self, factor):
        query = FactorQuery(
            category="vehicle", regions=("GB",), unit="kgCO2e/km", subcategory="hgv",
        )
        assert not query.matches(factor)

    def test_any_listed_region(self, factor):
        query = FactorQuery(category="vehicle", regions=("US", "GB"), unit="kgCO2e/km")
        assert query.matches(factor)

    def test_year_pin(self, factor):
        query = FactorQuery(category="vehicle", regions=("GB",), unit="kgCO2e/km", year=2024)
        assert not query.matches(factor)


class TestInMemoryFactorStore:
    """List-backed store."""

    def test_find_orders_by_year_desc(self, store):
        query = FactorQuery(category="electricity", regions=("US",), unit="kgCO2e/kWh")
        assert [f.year for f in store.find_factors(query)] == [2024, 2023]

    def test_inactive_never_returned(self, store):
        query = FactorQuery(category="electricity", regions=("DE",), unit="kgCO2e/kWh")
        assert store.find_factors(query) == []

    def test_custom_lookup_scoped(self, store):
        assert store.find_custom_factor("cf-ppa-1", "org-1").name == "Wind PPA"
        assert store.find_custom_factor("cf-ppa-1", "org-2") is None

    def test_list_sorted_by_category_region_year(self, store):
        keys = [(f.category, f.region, -f.year) for f in store.list_factors()]
        assert keys == sorted(keys)


class TestRegistryLoading:
    """YAML registry."""

    def test_bundled_registry(self):
        store = InMemoryFactorStore.default()

        assert len(store) == 58
        assert store.custom_factors == []

    def test_bundled_registry_keys_unique(self):
        factors, _ = load_registry(DEFAULT_REGISTRY_PATH)
        keys = [(f.category, f.subcategory, f.region, f.unit, f.year) for f in factors]

        assert len(keys) == len(set(keys))

    def test_custom_factors_loaded(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text(
            "factors:\n"
            "  - {category: water, region: GB, unit: kgCO2e/m3, co2e_per_unit: 0.149,"
            " source: DEFRA, year: 2025}\n"
            "custom_factors:\n"
            "  - {id: cf-1, organization_id: org-1, category: water,"
            " unit: kgCO2e/m3, co2e_per_unit: 0.1, source: Utility}\n",
            encoding="utf-8",
        )
        store = InMemoryFactorStore.from_yaml(path)

        assert len(store) == 1
        assert store.find_custom_factor("cf-1", "org-1").source == "Utility"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FactorStoreError) as exc_info:
            InMemoryFactorStore.from_yaml(tmp_path / "missing.yaml")
        assert exc_info.value.context["operation"] == "load_registry"

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("factors: [unclosed", encoding="utf-8")

        with pytest.raises(FactorStoreError):
            InMemoryFactorStore.from_yaml(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")

        with pytest.raises(InvalidFactorData):
            load_registry(path)

    def test_from_config_uses_bundled_registry(self):
        assert len(InMemoryFactorStore.from_config(EngineConfig())) == 58

    def test_from_config_missing_path(self, tmp_path):
        config = EngineConfig(factor_registry_path=str(tmp_path / "nope.yaml"))
        with pytest.raises(ConfigurationError):
            InMemoryFactorStore.from_config(config)
