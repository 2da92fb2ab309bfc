import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

import commissions.database.db as db_module
import commissions.models  # noqa: F401
from commissions.core.startup import bootstrap
from commissions.models.base import Base

PROJECT_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)


def _build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def init_db(run_migrations: bool = True) -> None:
    """Bring the schema to head, then create anything metadata adds on top."""
    bootstrap()
    active_url = db_module.get_active_database_url()
    if run_migrations:
        command.upgrade(_build_alembic_config(active_url), "head")
        logger.info(
            "database.migrations.applied",
            extra={"event": "database.migrations.applied", "revision": "head"},
        )

    Base.metadata.create_all(bind=db_module.get_engine())
    logger.info(
        "database.tables.created",
        extra={
            "event": "database.tables.created",
            "database_url": active_url,
        },
    )


if __name__ == "__main__":
    init_db()
