from __future__ import annotations

import json
import logging

import pytest
from sqlalchemy import create_engine

import commissions.core.startup as startup_module
from commissions.core.logging import LogContext, build_log_event
from commissions.core.logging_config import JsonFormatter
from commissions.models import Base


class _Cfg:
    def __init__(self, required: bool, jwt_secret: str = "s3cret-signing-key", notify: bool = True) -> None:
        self.DB_CONNECTIVITY_REQUIRED = required
        self.ENV = "development"
        self.JWT_SECRET = jwt_secret
        self.NOTIFY_OUTCOMES = notify
        self.DEFAULT_PAGE_SIZE = 20
        self.MAX_PAGE_SIZE = 100


def test_startup_skips_raise_when_db_optional_and_unreachable(monkeypatch):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg(required=False))
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: False)

    startup_module.validate_startup_config()


def test_startup_raises_when_db_required_and_unreachable(monkeypatch):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg(required=True))
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: False)

    with pytest.raises(RuntimeError, match="Database connectivity check failed"):
        startup_module.validate_startup_config()


def _events(caplog) -> list[str]:
    return [getattr(record, "event", None) for record in caplog.records]


def test_startup_warns_when_schema_is_missing(monkeypatch, caplog):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg(required=True))
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: True)
    monkeypatch.setattr(startup_module, "missing_tables", lambda engine: ["orders"])

    with caplog.at_level(logging.INFO, logger="commissions.core.startup"):
        startup_module.validate_startup_config()

    warning = next(record for record in caplog.records if record.getMessage() == "startup.database.schema_missing")
    assert warning.missing_tables == ["orders"]
    assert "startup.ready" in _events(caplog)


def test_startup_flags_placeholder_secret_and_muted_notifications(monkeypatch, caplog):
    cfg = _Cfg(required=False, jwt_secret="change_me_jwt_secret", notify=False)
    monkeypatch.setattr(startup_module, "get_config", lambda: cfg)
    monkeypatch.setattr(startup_module, "verify_database_connection", lambda: False)

    with caplog.at_level(logging.INFO, logger="commissions.core.startup"):
        startup_module.validate_startup_config()

    events = _events(caplog)
    assert "startup.database.unreachable" in events
    assert "startup.auth.placeholder_secret" in events
    assert "startup.notifications.disabled" in events


def test_missing_tables_reports_uncreated_schema(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    assert startup_module.missing_tables(engine) == list(startup_module.REQUIRED_TABLES)

    Base.metadata.create_all(bind=engine)
    assert startup_module.missing_tables(engine) == []
    engine.dispose()


def test_json_formatter_emits_structured_fields():
    record = logging.LogRecord("commissions.test", logging.INFO, __file__, 1, "negotiation.created", None, None)
    for key, value in build_log_event(
        "negotiation.created", LogContext(actor_id=7, actor_role="manager", negotiation_id=3), status="pending"
    ).items():
        setattr(record, key, value)

    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "negotiation.created"
    assert payload["event"] == "negotiation.created"
    assert payload["negotiation_id"] == 3
    assert payload["actor_role"] == "manager"
    assert payload["status"] == "pending"
