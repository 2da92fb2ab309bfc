from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import commissions.models  # noqa: F401
from commissions.auth.actor import Actor
from commissions.models import ActorRole, Base, ServiceListing
from commissions.services.notification_service import NegotiationNotifier

START = datetime(2026, 1, 5, 9, 0, 0)


class FrozenClock:
    """Naive UTC clock the tests can move forward explicitly."""

    def __init__(self, now: datetime = START) -> None:
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


class RecordingSink:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def __call__(self, conversation_key: str, text: str) -> None:
        self.messages.append((conversation_key, text))


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'commissions_test.db'}")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifier(sink):
    return NegotiationNotifier(sink=sink)


@pytest.fixture
def manager():
    return Actor(user_id=7, role=ActorRole.MANAGER)


@pytest.fixture
def other_manager():
    return Actor(user_id=8, role=ActorRole.MANAGER)


@pytest.fixture
def admin():
    return Actor(user_id=1, role=ActorRole.ADMIN)


def add_service(db, manager_id: int, title: str = "Wedding photography") -> ServiceListing:
    service = ServiceListing(manager_id=manager_id, title=title)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def make_service(session):
    def _make(manager_id: int, title: str = "Wedding photography") -> ServiceListing:
        return add_service(session, manager_id, title)

    return _make


@pytest.fixture
def service(session, manager):
    return add_service(session, manager.user_id)
