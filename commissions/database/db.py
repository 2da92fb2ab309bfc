"""Engine and session factory for the commission store."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from commissions.core.config import get_config

logger = logging.getLogger(__name__)

_POOLED_OPTIONS: dict[str, Any] = {"pool_pre_ping": True, "pool_recycle": 3600, "pool_size": 10, "max_overflow": 20}
# SQLite connections are handed between FastAPI threadpool workers.
_SQLITE_OPTIONS: dict[str, Any] = {"connect_args": {"check_same_thread": False}}

DATABASE_URL: str = ""
engine: Engine
SessionLocal: sessionmaker


def engine_options(database_url: str) -> dict[str, Any]:
    options = dict(_SQLITE_OPTIONS if database_url.startswith("sqlite") else _POOLED_OPTIONS)
    options["echo"] = get_config().DEBUG
    return options


def bind_database(database_url: str | None = None) -> Engine:
    """Point the module engine and session factory at ``database_url``."""
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url or DATABASE_URL or get_config().DATABASE_URL
    engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine


bind_database()


def get_engine() -> Engine:
    return engine


def get_active_database_url() -> str:
    return DATABASE_URL


def new_session() -> Session:
    """Open a session on whichever engine is currently bound."""
    return SessionLocal()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; closed once the response is sent."""
    db = new_session()
    try:
        yield db
    finally:
        db.close()


def verify_database_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception(
            "database.connection_failed",
            extra={"event": "database.connection_failed", "database_scheme": DATABASE_URL.split("://", 1)[0]},
        )
        return False
    return True
