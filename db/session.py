"""
db/session.py

SQLAlchemy engine and session factory for the shop cache.
"""

from __future__ import annotations

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


def _get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def create_db_engine(database_url: str) -> Engine:
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    return create_engine(
        database_url,
        echo=_get_bool_env("SQL_ECHO", default=False),
        pool_pre_ping=True,
        pool_recycle=_get_int_env("DB_POOL_RECYCLE", 1800),
        pool_size=_get_int_env("DB_POOL_SIZE", 5),
        max_overflow=_get_int_env("DB_MAX_OVERFLOW", 10),
        pool_timeout=_get_int_env("DB_POOL_TIMEOUT", 5),
        connect_args={"connect_timeout": _get_int_env("DB_CONNECT_TIMEOUT", 3)},
    )


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine | None:
    """
    Return the shared engine, creating it on first call.

    Returns None when no database URL is configured.
    """
    global _engine
    if _engine is None:
        database_url = resolve_database_url()
        if database_url is None:
            return None
        _engine = create_db_engine(database_url)
    return _engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_session_factory() -> sessionmaker | None:
    """Shared session factory, or None when caching has no database."""
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        if engine is None:
            return None
        _session_factory = build_session_factory(engine)
    return _session_factory
