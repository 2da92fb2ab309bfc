"""Process startup: logging, database reachability and schema presence."""

from __future__ import annotations

import logging

from sqlalchemy import inspect

from commissions.core.config import get_config
from commissions.core.logging_config import configure_logging
from commissions.database.db import get_active_database_url, get_engine, verify_database_connection

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("services", "negotiations", "negotiation_history", "orders")


def missing_tables(engine) -> list[str]:
    """Tables the negotiation engine needs that the database does not have yet."""
    present = set(inspect(engine).get_table_names())
    return [name for name in REQUIRED_TABLES if name not in present]


def validate_startup_config() -> None:
    config = get_config()
    scheme = get_active_database_url().split("://", 1)[0]

    if verify_database_connection():
        missing = missing_tables(get_engine())
        if missing:
            # Requests would fail on first query; `alembic upgrade head` creates them.
            logger.warning(
                "startup.database.schema_missing",
                extra={"event": "startup.database.schema_missing", "missing_tables": missing},
            )
    elif config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    else:
        logger.warning(
            "startup.database.unreachable",
            extra={"event": "startup.database.unreachable", "database_scheme": scheme},
        )

    if "change_me" in config.JWT_SECRET:
        logger.warning(
            "startup.auth.placeholder_secret",
            extra={"event": "startup.auth.placeholder_secret", "env": config.ENV},
        )
    if not config.NOTIFY_OUTCOMES:
        logger.info(
            "startup.notifications.disabled",
            extra={"event": "startup.notifications.disabled"},
        )

    logger.info(
        "startup.ready",
        extra={
            "event": "startup.ready",
            "env": config.ENV,
            "database_scheme": scheme,
            "default_page_size": config.DEFAULT_PAGE_SIZE,
            "max_page_size": config.MAX_PAGE_SIZE,
        },
    )


def bootstrap() -> None:
    """Configure logging, then check the database before serving."""
    configure_logging()
    validate_startup_config()
