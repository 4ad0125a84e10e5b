"""
Database models for emission factor reference data

Tables:
- emission_factors: versioned reference table, one active row per
  (category, subcategory, region, unit, year)
- custom_emission_factors: organization-scoped overrides keyed by
  (id, organization_id)
"""

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Index,
    Integer,
    String,
)

from ghg_engine.data.emission_factor_record import CustomEmissionFactor, EmissionFactor
from ghg_engine.db.base import Base


class EmissionFactorRow(Base):
    """Reference emission factor"""

    __tablename__ = "emission_factors"

    id = Column(String(255), primary_key=True)
    category = Column(String(100), nullable=False)
    subcategory = Column(String(100), nullable=True)
    region = Column(String(50), nullable=False)
    unit = Column(String(50), nullable=False)
    year = Column(Integer, nullable=False)

    co2e_per_unit = Column(Float, nullable=False)
    co2_per_unit = Column(Float, nullable=True)
    ch4_per_unit = Column(Float, nullable=True)  # as CO2e
    n2o_per_unit = Column(Float, nullable=True)  # as CO2e

    source = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        # Retired versions may share a key with their active replacement
        Index(
            "uq_active_emission_factor_key",
            "category", "subcategory", "region", "unit", "year",
            unique=True,
            sqlite_where=is_active.is_(True),
            postgresql_where=is_active.is_(True),
        ),
        Index("idx_emission_factor_lookup", "category", "region", "unit"),
    )

    def to_record(self) -> EmissionFactor:
        return EmissionFactor(
            factor_id=self.id,
            category=self.category,
            subcategory=self.subcategory,
            region=self.region,
            unit=self.unit,
            year=self.year,
            co2e_per_unit=self.co2e_per_unit,
            co2_per_unit=self.co2_per_unit,
            ch4_per_unit=self.ch4_per_unit,
            n2o_per_unit=self.n2o_per_unit,
            source=self.source,
            is_active=self.is_active,
        )

    @classmethod
    def from_record(cls, factor: EmissionFactor) -> "EmissionFactorRow":
        return cls(
            id=factor.factor_id,
            category=factor.category,
            subcategory=factor.subcategory,
            region=factor.region,
            unit=factor.unit,
            year=factor.year,
            co2e_per_unit=factor.co2e_per_unit,
            co2_per_unit=factor.co2_per_unit,
            ch4_per_unit=factor.ch4_per_unit,
            n2o_per_unit=factor.n2o_per_unit,
            source=factor.source,
            is_active=factor.is_active,
        )

    def __repr__(self):
        return f"<EmissionFactorRow(id={self.id}, co2e_per_unit={self.co2e_per_unit})>"


class CustomEmissionFactorRow(Base):
    """Organization-specific emission factor"""

    __tablename__ = "custom_emission_factors"

    id = Column(String(255), primary_key=True)
    organization_id = Column(String(36), primary_key=True, index=True)
    name = Column(String(255), nullable=False, default="")
    category = Column(String(100), nullable=False)
    unit = Column(String(50), nullable=False)
    co2e_per_unit = Column(Float, nullable=False)
    source = Column(String(255), nullable=False)

    def to_record(self) -> CustomEmissionFactor:
        return CustomEmissionFactor(
            factor_id=self.id,
            organization_id=self.organization_id,
            name=self.name or "",
            category=self.category,
            unit=self.unit,
            co2e_per_unit=self.co2e_per_unit,
            source=self.source,
        )

    @classmethod
    def from_record(cls, factor: CustomEmissionFactor) -> "CustomEmissionFactorRow":
        return cls(
            id=factor.factor_id,
            organization_id=factor.organization_id,
            name=factor.name,
            category=factor.category,
            unit=factor.unit,
            co2e_per_unit=factor.co2e_per_unit,
            source=factor.source,
        )

    def __repr__(self):
        return (
            f"<CustomEmissionFactorRow(id={self.id}, "
            f"organization_id={self.organization_id})>"
        )
