from __future__ import annotations

from datetime import datetime

from commissions.auth.actor import Actor
from commissions.models.enums import ActorRole, HistoryAction
from commissions.orchestration.state_machine import apply_admin_response, open_negotiation
from commissions.services.notification_service import (
    NegotiationNotifier,
    conversation_key_for,
    format_outcome_message,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)
ADMIN = Actor(user_id=1, role=ActorRole.ADMIN)


def _accepted():
    negotiation = open_negotiation(manager_id=7, percentage="15", now=NOW, service_id=3)
    negotiation.id = 12
    apply_admin_response(negotiation, admin_id=1, action="accept", now=NOW)
    return negotiation


def test_outcome_message_names_record_actor_and_rate():
    message = format_outcome_message(_accepted(), HistoryAction.ACCEPT, ADMIN)
    assert message == "Commission offer #12 for service #3 accepted by admin at 15.00%."


def test_notifier_posts_to_negotiation_conversation():
    posted = []
    notifier = NegotiationNotifier(sink=lambda key, text: posted.append((key, text)))
    negotiation = _accepted()

    assert notifier.notify_outcome(negotiation, HistoryAction.ACCEPT, ADMIN) is True
    assert posted == [("negotiation:12", format_outcome_message(negotiation, HistoryAction.ACCEPT, ADMIN))]
    assert conversation_key_for(negotiation) == "negotiation:12"


def test_notifier_swallows_sink_failures(caplog):
    def _broken(key, text):
        raise ConnectionError("chat down")

    notifier = NegotiationNotifier(sink=_broken)
    assert notifier.notify_outcome(_accepted(), HistoryAction.ACCEPT, ADMIN) is False
    assert any(record.message == "notification.delivery_failed" for record in caplog.records)


def test_disabled_notifier_sends_nothing():
    posted = []
    notifier = NegotiationNotifier(sink=lambda key, text: posted.append(text), enabled=False)
    assert notifier.notify_outcome(_accepted(), HistoryAction.ACCEPT, ADMIN) is False
    assert posted == []
