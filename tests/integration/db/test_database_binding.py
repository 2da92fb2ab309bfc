from __future__ import annotations

import pytest

import commissions.database.db as db_module
from commissions.models import Base
from commissions.services.base_service import BaseService


@pytest.fixture
def rebound(tmp_path):
    original = db_module.get_active_database_url()
    url = f"sqlite:///{tmp_path / 'bound.db'}"
    db_module.bind_database(url)
    yield url
    db_module.get_engine().dispose()
    db_module.bind_database(original)


def test_sqlite_engine_options_skip_pool_sizing():
    options = db_module.engine_options("sqlite:///./commissions.db")
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_size" not in options

    pooled = db_module.engine_options("postgresql://db.internal/commissions")
    assert pooled["pool_pre_ping"] is True
    assert "connect_args" not in pooled


def test_rebinding_moves_sessions_to_the_new_engine(rebound):
    assert db_module.get_active_database_url() == rebound
    assert db_module.verify_database_connection() is True

    Base.metadata.create_all(bind=db_module.get_engine())
    service = BaseService()
    try:
        assert service.db.get_bind() is db_module.get_engine()
    finally:
        service.close()


def test_get_db_yields_session_on_bound_engine(rebound):
    generator = db_module.get_db()
    db = next(generator)
    assert db.get_bind() is db_module.get_engine()
    generator.close()
