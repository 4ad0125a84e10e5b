# -*- coding: utf-8 -*-
"""
Input models for the emissions calculation engine.

ActivityRecord is the validated boundary object handed to the engine by
any upstream producer (manual entry, document extraction, accounting
import). Validation here mirrors the upstream request schema: a positive,
finite activity value, non-empty unit/category/region strings and a
reporting year between 2000 and 2100. The engine itself performs no
further input validation.
"""

import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EmissionScope(str, Enum):
    """GHG Protocol emission scope"""
    SCOPE_1 = "SCOPE_1"  # Direct emissions
    SCOPE_2 = "SCOPE_2"  # Purchased electricity, heating, cooling
    SCOPE_3 = "SCOPE_3"  # Value chain


CATEGORY_SCOPES = {
    "electricity": EmissionScope.SCOPE_2,
    "district_heating": EmissionScope.SCOPE_2,
    "district_cooling": EmissionScope.SCOPE_2,
    "natural_gas": EmissionScope.SCOPE_1,
    "diesel": EmissionScope.SCOPE_1,
    "gasoline": EmissionScope.SCOPE_1,
    "lpg": EmissionScope.SCOPE_1,
    "fuel_oil": EmissionScope.SCOPE_1,
    "coal": EmissionScope.SCOPE_1,
    "vehicle": EmissionScope.SCOPE_1,
    "refrigerant": EmissionScope.SCOPE_1,
    "air_travel": EmissionScope.SCOPE_3,
    "waste": EmissionScope.SCOPE_3,
    "water": EmissionScope.SCOPE_3,
}


def category_scope(category: str) -> EmissionScope:
    """
    GHG Protocol scope for an activity category.

    Unknown categories are treated as value-chain (Scope 3) activity.
    """
    return CATEGORY_SCOPES.get(category, EmissionScope.SCOPE_3)


class ActivityRecord(BaseModel):
    """
    A quantified real-world action subject to emissions calculation.

    Attributes:
        activity_value: Quantity of activity in ``activity_unit``
        activity_unit: Unit as reported (e.g. "gallons", "therms", "kWh")
        category: Activity category (electricity, natural_gas, diesel, ...)
        subcategory: Optional refinement (grid, R-410A, long_haul, ...)
        region: ISO-like region code or "GLOBAL"
        year: Reporting year, used to pin the factor publication year
        custom_factor_id: Organization-specific factor to use instead of the
            reference table
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    activity_value: float = Field(
        ...,
        gt=0,
        alias="activityValue",
        description="Quantity of activity in activity_unit",
    )
    activity_unit: str = Field(
        ...,
        min_length=1,
        alias="activityUnit",
        description="Unit the activity was reported in",
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Activity category",
    )
    subcategory: Optional[str] = Field(
        default=None,
        description="Optional category refinement",
    )
    region: str = Field(
        ...,
        min_length=1,
        description="ISO-like region code or GLOBAL",
    )
    year: int = Field(
        ...,
        ge=2000,
        le=2100,
        description="Reporting year",
    )
    custom_factor_id: Optional[str] = Field(
        default=None,
        alias="customFactorId",
        description="Organization-specific emission factor id",
    )

    @field_validator("activity_value")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinity."""
        if not math.isfinite(v):
            raise ValueError(f"activity_value must be finite, got {v}")
        return v

    @field_validator("subcategory", "custom_factor_id")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings as absent."""
        return v or None

    @property
    def scope(self) -> EmissionScope:
        return category_scope(self.category)


__all__ = [
    "ActivityRecord",
    "EmissionScope",
    "CATEGORY_SCOPES",
    "category_scope",
]
