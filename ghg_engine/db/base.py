"""
Database base configuration and utilities for the SQL factor store
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ghg_engine.config import get_config

# Create declarative base
Base = declarative_base()


def get_database_url() -> str:
    """
    Get database URL from the engine configuration

    Returns:
        Database connection URL
    """
    return get_config().database_url


def get_engine(database_url: Optional[str] = None, **kwargs) -> Engine:
    """
    Create a SQLAlchemy engine

    Args:
        database_url: Optional database URL (uses config if not provided)
        **kwargs: Additional engine configuration

    Returns:
        SQLAlchemy Engine
    """
    url = database_url or get_database_url()

    engine_config = {
        "pool_size": kwargs.get("pool_size", 5),
        "max_overflow": kwargs.get("max_overflow", 10),
        "pool_timeout": kwargs.get("pool_timeout", 30),
        "pool_recycle": kwargs.get("pool_recycle", 3600),
        "echo": kwargs.get("echo", False),
    }

    # SQLite-specific configuration
    if url.startswith("sqlite"):
        engine_config = {
            "connect_args": {"check_same_thread": False},
            "echo": kwargs.get("echo", False),
        }
        # In-memory databases live in one connection; share it across threads
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            engine_config["poolclass"] = StaticPool

    return create_engine(url, **engine_config)


def get_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Database session context manager

    Commits on success, rolls back on any error.

    Yields:
        Database session
    """
    session = session_factory()

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine, drop_all: bool = False) -> None:
    """
    Initialize database (create all tables)

    Args:
        engine: SQLAlchemy engine
        drop_all: If True, drop all tables first
    """
    if drop_all:
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
