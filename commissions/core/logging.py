"""Structured logging helpers for negotiation events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    actor_id: int | None = None
    actor_role: str | None = None
    negotiation_id: int | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build the ``extra`` payload for a structured log call."""
    payload: dict[str, Any] = {
        "event": event,
        "actor_id": context.actor_id,
        "actor_role": context.actor_role,
        "negotiation_id": context.negotiation_id,
    }
    payload.update(fields)
    return payload
