"""Negotiation outcome notices posted to the chat layer."""

from __future__ import annotations

import logging
from collections.abc import Callable

from commissions.auth.actor import Actor
from commissions.models.enums import HistoryAction
from commissions.models.negotiation import Negotiation

logger = logging.getLogger(__name__)

MessageSink = Callable[[str, str], None]

_ACTION_PHRASES = {
    HistoryAction.OFFER: "offered",
    HistoryAction.OFFER_UPDATED: "updated",
    HistoryAction.COUNTER: "countered",
    HistoryAction.ACCEPT: "accepted",
    HistoryAction.REJECT: "rejected",
    HistoryAction.MANAGER_COUNTER: "countered",
    HistoryAction.MANAGER_ACCEPT_COUNTER: "accepted",
    HistoryAction.MANAGER_REJECT_COUNTER: "rejected",
}


def log_message_sink(conversation_key: str, text: str) -> None:
    """Default sink: record the notice in the application log."""
    logger.info(
        "chat.message_posted",
        extra={"event": "chat.message_posted", "conversation": conversation_key, "text": text},
    )


def conversation_key_for(negotiation: Negotiation) -> str:
    return f"negotiation:{negotiation.id}"


def format_outcome_message(negotiation: Negotiation, action: HistoryAction, actor: Actor) -> str:
    phrase = _ACTION_PHRASES.get(action, action.value)
    scope = f"service #{negotiation.service_id}" if negotiation.service_id is not None else "all services"
    message = f"Commission offer #{negotiation.id} for {scope} {phrase} by {actor.role.value}"
    if action in (HistoryAction.ACCEPT, HistoryAction.MANAGER_ACCEPT_COUNTER):
        return f"{message} at {negotiation.final_percentage:.2f}%."
    if action is HistoryAction.COUNTER:
        return f"{message} with {negotiation.counter_percentage:.2f}%."
    if action in (HistoryAction.MANAGER_COUNTER, HistoryAction.OFFER, HistoryAction.OFFER_UPDATED):
        return f"{message} with {negotiation.offered_percentage:.2f}%."
    return f"{message}."


class NegotiationNotifier:
    """Fire-and-forget delivery of negotiation outcome messages."""

    def __init__(self, sink: MessageSink | None = None, enabled: bool = True) -> None:
        self.sink = sink or log_message_sink
        self.enabled = enabled

    def notify_outcome(self, negotiation: Negotiation, action: HistoryAction, actor: Actor) -> bool:
        """Post a notice; delivery failures never propagate to the caller."""
        if not self.enabled:
            return False
        try:
            self.sink(conversation_key_for(negotiation), format_outcome_message(negotiation, action, actor))
            return True
        except Exception:
            logger.exception(
                "notification.delivery_failed",
                extra={
                    "event": "notification.delivery_failed",
                    "negotiation_id": negotiation.id,
                    "action": action.value,
                },
            )
            return False
