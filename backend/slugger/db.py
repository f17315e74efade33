"""
Database wiring for the slug service.

One SQLAlchemyStore per process owns the engine. The ORM session factory
used by the link routes is bound to the same engine, so allocation probes
and inserts share one connection pool. Nothing connects at import time.
"""

import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .store import SQLAlchemyStore

load_dotenv()

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///./dev.db"

_store = None
_SessionLocal = None
_tables_initialized = False


def create_store(database_url: str = None) -> SQLAlchemyStore:
    """
    Build a slug store for `database_url`, or DATABASE_URL from the environment.

    `postgres://` URLs (as handed out by most hosting providers) are rewritten
    to the `postgresql://` scheme SQLAlchemy expects.
    """
    url = database_url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]

    # pysqlite connections are handed between FastAPI worker threads
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return SQLAlchemyStore(create_engine(url, connect_args=connect_args, pool_pre_ping=True))


def get_store() -> SQLAlchemyStore:
    """Process-wide slug store, created on first use."""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def get_engine():
    return get_store().engine


def get_session_local():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def ensure_tables():
    """Create the service's own tables once per process."""
    global _tables_initialized
    if not _tables_initialized:
        from . import models  # noqa: F401  registers ShortLink on Base
        Base.metadata.create_all(bind=get_engine())
        _tables_initialized = True


def get_db():
    """FastAPI dependency yielding an ORM session."""
    db = get_session_local()()
    try:
        yield db
    finally:
        db.close()
