"""Pydantic schema package for API contracts."""

from commissions.schemas.common import APIEnvelope, ErrorEnvelope, Pagination
from commissions.schemas.negotiations import (
    AdminResponseRequest,
    BulkResponseRequest,
    BulkResultItem,
    HistoryEntryResponse,
    ManagerResponseRequest,
    NegotiationPage,
    NegotiationResponse,
    OfferCreateRequest,
    OfferUpdateRequest,
)
from commissions.schemas.settlements import (
    CommissionPaidRequest,
    EffectiveRateResponse,
    OrderCommissionResponse,
    OrderSettlementResponse,
    SettlementQuoteRequest,
    SettlementQuoteResponse,
)

__all__ = [
    "APIEnvelope",
    "AdminResponseRequest",
    "BulkResponseRequest",
    "BulkResultItem",
    "CommissionPaidRequest",
    "EffectiveRateResponse",
    "ErrorEnvelope",
    "HistoryEntryResponse",
    "ManagerResponseRequest",
    "NegotiationPage",
    "NegotiationResponse",
    "OfferCreateRequest",
    "OfferUpdateRequest",
    "OrderCommissionResponse",
    "OrderSettlementResponse",
    "Pagination",
    "SettlementQuoteRequest",
    "SettlementQuoteResponse",
]
