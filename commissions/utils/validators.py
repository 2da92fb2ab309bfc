"""Deterministic validators and sanitizers for free-form negotiation input."""

from __future__ import annotations

NOTES_MAX_LEN = 500


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence/display."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    cleaned = cleaned[:max_len]
    return cleaned


def clean_notes(value: str | None) -> str | None:
    """Sanitize negotiation notes; blank notes are stored as ``None``."""
    cleaned = sanitize_text(value, max_len=NOTES_MAX_LEN)
    return cleaned or None
