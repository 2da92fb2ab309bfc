"""Dependency providers for API handlers and scripts."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from commissions.auth.actor import Actor, from_claims
from commissions.auth.jwt import decode_jwt
from commissions.core.config import Config, get_config
from commissions.database.db import get_db
from commissions.services.notification_service import NegotiationNotifier


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def get_current_actor(token: str, settings: Config | None = None) -> Actor:
    """Resolve the acting user from a bearer token."""
    cfg = settings or get_settings()
    claims = decode_jwt(token=token, secret=cfg.JWT_SECRET)
    return from_claims(claims)


def get_notifier(settings: Config | None = None) -> NegotiationNotifier:
    cfg = settings or get_settings()
    return NegotiationNotifier(enabled=cfg.NOTIFY_OUTCOMES)
