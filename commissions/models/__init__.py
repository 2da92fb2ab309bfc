"""Modular SQLAlchemy model package for the commission schema."""

from commissions.models.base import Base
from commissions.models.enums import (
    ActorRole,
    HistoryAction,
    NegotiationStatus,
    OfferType,
    OrderCommissionStatus,
    ResponseAction,
    ServiceCommissionStatus,
)
from commissions.models.negotiation import Negotiation, NegotiationHistoryEntry
from commissions.models.order import Order
from commissions.models.service_listing import ServiceListing

__all__ = [
    "ActorRole",
    "Base",
    "HistoryAction",
    "Negotiation",
    "NegotiationHistoryEntry",
    "NegotiationStatus",
    "OfferType",
    "Order",
    "OrderCommissionStatus",
    "ResponseAction",
    "ServiceCommissionStatus",
    "ServiceListing",
]
