"""
SQL-backed factor store

Implements the FactorStore read interface over the ``emission_factors``
and ``custom_emission_factors`` tables. Every read opens a short-lived
session; database errors surface as FactorStoreError and are never
retried here.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ghg_engine.data.emission_factor_record import (
    GLOBAL_REGION,
    CustomEmissionFactor,
    EmissionFactor,
)
from ghg_engine.data.factor_store import FactorQuery, FactorStore
from ghg_engine.db.base import get_engine, get_session_factory, init_db, session_scope
from ghg_engine.db.models import CustomEmissionFactorRow, EmissionFactorRow
from ghg_engine.exceptions import FactorStoreError

logger = logging.getLogger(__name__)


def seed_factors(
    session: Session,
    factors: Iterable[EmissionFactor],
    custom_factors: Iterable[CustomEmissionFactor] = (),
) -> int:
    """
    Insert or update factor rows by primary key.

    Returns:
        Number of rows written
    """
    count = 0
    for factor in factors:
        session.merge(EmissionFactorRow.from_record(factor))
        count += 1
    for custom in custom_factors:
        session.merge(CustomEmissionFactorRow.from_record(custom))
        count += 1
    logger.info("Seeded %d emission factor rows", count)
    return count


class SQLFactorStore(FactorStore):
    """
    Factor store backed by a SQLAlchemy database.

    Example:
        >>> store = SQLFactorStore.from_url("sqlite:///:memory:", create_tables=True)
        >>> store.seed(InMemoryFactorStore.default().list_factors())
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = get_session_factory(engine)

    @classmethod
    def from_url(
        cls,
        database_url: Optional[str] = None,
        create_tables: bool = False,
        **kwargs,
    ) -> "SQLFactorStore":
        """Create a store on a new engine (config database_url if None)."""
        engine = get_engine(database_url, **kwargs)
        if create_tables:
            init_db(engine)
        return cls(engine)

    def seed(
        self,
        factors: Iterable[EmissionFactor],
        custom_factors: Iterable[CustomEmissionFactor] = (),
    ) -> int:
        """Write factors in one transaction."""
        try:
            with session_scope(self._session_factory) as session:
                return seed_factors(session, factors, custom_factors)
        except SQLAlchemyError as e:
            raise FactorStoreError(
                "Failed to seed emission factors", operation="seed", cause=e
            ) from e

    def find_factors(self, query: FactorQuery) -> List[EmissionFactor]:
        stmt = (
            select(EmissionFactorRow)
            .where(EmissionFactorRow.is_active.is_(True))
            .where(EmissionFactorRow.category == query.category)
            .where(EmissionFactorRow.region.in_(query.regions))
            .where(EmissionFactorRow.unit == query.unit)
        )
        if query.subcategory is not None:
            stmt = stmt.where(EmissionFactorRow.subcategory == query.subcategory)
        if query.year is not None:
            stmt = stmt.where(EmissionFactorRow.year == query.year)
        stmt = stmt.order_by(EmissionFactorRow.year.desc(), EmissionFactorRow.id)

        try:
            with session_scope(self._session_factory) as session:
                return [row.to_record() for row in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise FactorStoreError(
                f"Factor lookup failed for {query.describe()}",
                operation="find_factors",
                cause=e,
            ) from e

    def find_custom_factor(
        self,
        factor_id: str,
        organization_id: str,
    ) -> Optional[CustomEmissionFactor]:
        stmt = (
            select(CustomEmissionFactorRow)
            .where(CustomEmissionFactorRow.id == factor_id)
            .where(CustomEmissionFactorRow.organization_id == organization_id)
        )
        try:
            with session_scope(self._session_factory) as session:
                row = session.scalars(stmt).first()
                return row.to_record() if row is not None else None
        except SQLAlchemyError as e:
            raise FactorStoreError(
                f"Custom factor lookup failed for {factor_id}",
                operation="find_custom_factor",
                cause=e,
            ) from e

    def list_factors(
        self,
        category: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        stmt = select(EmissionFactorRow).where(EmissionFactorRow.is_active.is_(True))
        if category:
            stmt = stmt.where(EmissionFactorRow.category == category)
        if region:
            stmt = stmt.where(EmissionFactorRow.region.in_((region, GLOBAL_REGION)))
        stmt = stmt.order_by(
            EmissionFactorRow.category,
            EmissionFactorRow.region,
            EmissionFactorRow.year.desc(),
        )
        try:
            with session_scope(self._session_factory) as session:
                return [row.to_record() for row in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise FactorStoreError(
                "Factor listing failed", operation="list_factors", cause=e
            ) from e
