from __future__ import annotations

import pytest

from commissions.core.config import get_config
from commissions.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _fresh_config():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_defaults_load_for_development(monkeypatch):
    for name in ("DATABASE_URL", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE", "NOTIFY_OUTCOMES", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    cfg = get_config("development")
    assert cfg.DATABASE_URL.startswith("sqlite")
    assert cfg.DEFAULT_PAGE_SIZE == 20
    assert cfg.MAX_PAGE_SIZE == 100
    assert cfg.NOTIFY_OUTCOMES is True
    assert cfg.is_production is False


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DATABASE_URL", "mysql://db/commissions"),
        ("JWT_ACCESS_TTL_MINUTES", "0"),
        ("DEFAULT_PAGE_SIZE", "500"),
        ("LOG_LEVEL", "chatty"),
    ],
)
def test_invalid_values_raise_configuration_error(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        get_config("development")


def test_production_rejects_placeholder_secret(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "change_me_jwt_secret")
    with pytest.raises(ConfigurationError):
        get_config("production")

    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    cfg = get_config("production")
    assert cfg.DEBUG is False
