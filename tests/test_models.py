"""Tests for the ActivityRecord boundary model and scope mapping."""

import pytest
from pydantic import ValidationError

from ghg_engine.models import ActivityRecord, EmissionScope, category_scope


class TestActivityRecord:

    def test_camel_case_aliases(self):
        record = ActivityRecord.model_validate({
            "activityValue": 12.5,
            "activityUnit": "liters",
            "category": "diesel",
            "region": "US",
            "year": 2024,
            "customFactorId": "cf-1",
        })

        assert record.activity_value == 12.5
        assert record.activity_unit == "liters"
        assert record.custom_factor_id == "cf-1"

    @pytest.mark.parametrize("value", [0, -1, float("nan"), float("inf")])
    def test_activity_value_positive_and_finite(self, make_record, value):
        with pytest.raises(ValidationError):
            make_record(activity_value=value)

    @pytest.mark.parametrize("year", [1999, 2101])
    def test_year_range(self, make_record, year):
        with pytest.raises(ValidationError):
            make_record(year=year)

    def test_empty_unit_rejected(self, make_record):
        with pytest.raises(ValidationError):
            make_record(activity_unit="")

    def test_empty_subcategory_is_none(self, make_record):
        assert make_record(subcategory="").subcategory is None

    def test_frozen(self, make_record):
        record = make_record()
        with pytest.raises(ValidationError):
            record.activity_value = 5

    def test_scope(self, make_record):
        assert make_record().scope == EmissionScope.SCOPE_2


class TestCategoryScope:

    @pytest.mark.parametrize("category,scope", [
        ("electricity", EmissionScope.SCOPE_2),
        ("natural_gas", EmissionScope.SCOPE_1),
        ("refrigerant", EmissionScope.SCOPE_1),
        ("air_travel", EmissionScope.SCOPE_3),
        ("something_new", EmissionScope.SCOPE_3),
    ])
    def test_mapping(self, category, scope):
        assert category_scope(category) == scope
