"""
db/session.py

Engine and session factory for the report store.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.config import is_sqlite_url, resolve_database_url

IN_MEMORY_SQLITE_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _sql_echo() -> bool:
    return os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"}


def _sqlite_engine(database_url: str) -> Engine:
    connect_args = {"check_same_thread": False}
    if database_url in IN_MEMORY_SQLITE_URLS:
        # One shared connection, otherwise every session gets its own empty database.
        return create_engine(database_url, echo=_sql_echo(), connect_args=connect_args, poolclass=StaticPool)
    return create_engine(database_url, echo=_sql_echo(), connect_args=connect_args)


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Build an engine for ``database_url``, or for the configured URL when omitted.
    """

    database_url = database_url or resolve_database_url()
    if is_sqlite_url(database_url):
        return _sqlite_engine(database_url)
    return create_engine(
        database_url,
        echo=_sql_echo(),
        pool_pre_ping=True,
        pool_recycle=_get_int_env("DB_POOL_RECYCLE", 1800),
        pool_size=_get_int_env("DB_POOL_SIZE", 5),
        max_overflow=_get_int_env("DB_MAX_OVERFLOW", 10),
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Shared engine, created on first use."""
    return create_db_engine()


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    with _session_factory()() as session:
        yield session
