"""
Database module for the SQL factor store
Provides SQLAlchemy models and database utilities
"""

from ghg_engine.db.base import Base, get_engine, init_db, session_scope
from ghg_engine.db.models import CustomEmissionFactorRow, EmissionFactorRow
from ghg_engine.db.store import SQLFactorStore, seed_factors

__all__ = [
    "Base",
    "get_engine",
    "init_db",
    "session_scope",
    "EmissionFactorRow",
    "CustomEmissionFactorRow",
    "SQLFactorStore",
    "seed_factors",
]
