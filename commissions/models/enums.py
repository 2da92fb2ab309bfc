"""Canonical enum values for the commission schema."""

from __future__ import annotations

import enum


class ActorRole(str, enum.Enum):
    MANAGER = "manager"
    ADMIN = "admin"


class NegotiationStatus(str, enum.Enum):
    PENDING = "pending"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class OfferType(str, enum.Enum):
    MANAGER_OFFER = "manager_offer"
    ADMIN_COUNTER = "admin_counter"
    FINAL_AGREEMENT = "final_agreement"


class HistoryAction(str, enum.Enum):
    OFFER = "offer"
    OFFER_UPDATED = "offer_updated"
    COUNTER = "counter"
    ACCEPT = "accept"
    REJECT = "reject"
    MANAGER_COUNTER = "manager_counter"
    MANAGER_ACCEPT_COUNTER = "manager_accept_counter"
    MANAGER_REJECT_COUNTER = "manager_reject_counter"


class ResponseAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    COUNTER = "counter"


class ServiceCommissionStatus(str, enum.Enum):
    NONE = "none"
    PENDING = "pending"
    NEGOTIATING = "negotiating"
    AGREED = "agreed"
    REJECTED = "rejected"


class OrderCommissionStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


# Statuses counted by the one-active-negotiation-per-subject constraint.
ACTIVE_STATUSES = (
    NegotiationStatus.PENDING,
    NegotiationStatus.NEGOTIATING,
    NegotiationStatus.ACCEPTED,
)
OPEN_STATUSES = (NegotiationStatus.PENDING, NegotiationStatus.NEGOTIATING)
TERMINAL_STATUSES = (
    NegotiationStatus.ACCEPTED,
    NegotiationStatus.REJECTED,
    NegotiationStatus.EXPIRED,
)
