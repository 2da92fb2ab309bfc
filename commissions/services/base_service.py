"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from sqlalchemy.orm import Session

from commissions.database.db import new_session
from commissions.models.base import utcnow


class BaseService:
    """Base class for services that operate on a SQLAlchemy session.

    ``clock`` returns naive UTC datetimes and exists so tests can pin "now"
    when exercising validity windows.
    """

    def __init__(self, db: Session | None = None, clock: Callable[[], datetime] | None = None) -> None:
        self.db = db or new_session()
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return self._clock()

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
