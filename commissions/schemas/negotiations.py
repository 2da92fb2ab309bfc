"""Negotiation request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from commissions.models.enums import ActorRole, HistoryAction, NegotiationStatus, OfferType
from commissions.schemas.common import Pagination
from commissions.utils.validators import NOTES_MAX_LEN


class OfferCreateRequest(BaseModel):
    service_id: int | None = Field(default=None, ge=1)
    percentage: Decimal
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LEN)
    valid_until: datetime | None = None
    min_order_value: Decimal | None = None
    max_order_value: Decimal | None = None


class OfferUpdateRequest(BaseModel):
    percentage: Decimal
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LEN)
    valid_until: datetime | None = None
    min_order_value: Decimal | None = None
    max_order_value: Decimal | None = None
    expected_version: int | None = Field(default=None, ge=1)


class AdminResponseRequest(BaseModel):
    action: str = Field(min_length=2, max_length=16)
    counter_percentage: Decimal | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LEN)
    valid_until: datetime | None = None
    expected_version: int | None = Field(default=None, ge=1)


class ManagerResponseRequest(BaseModel):
    action: str = Field(min_length=2, max_length=16)
    counter_percentage: Decimal | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LEN)
    expected_version: int | None = Field(default=None, ge=1)


class BulkResponseRequest(BaseModel):
    negotiation_ids: list[int] = Field(min_length=1, max_length=100)
    action: str = Field(min_length=2, max_length=16)
    counter_percentage: Decimal | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LEN)


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    timestamp: datetime
    action: HistoryAction
    percentage: Decimal | None = None
    notes: str | None = None
    actor_id: int
    actor_role: ActorRole


class NegotiationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    manager_id: int
    service_id: int | None = None
    offered_percentage: Decimal
    counter_percentage: Decimal | None = None
    final_percentage: Decimal | None = None
    status: NegotiationStatus
    offer_type: OfferType
    admin_notes: str | None = None
    admin_responded_by: int | None = None
    admin_responded_at: datetime | None = None
    manager_response: str | None = None
    manager_notes: str | None = None
    manager_responded_at: datetime | None = None
    agreed_at: datetime | None = None
    agreed_by: int | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool
    min_order_value: Decimal | None = None
    max_order_value: Decimal | None = None
    version: int
    created_at: datetime
    updated_at: datetime
    history: list[HistoryEntryResponse] = Field(default_factory=list)


class NegotiationPage(BaseModel):
    items: list[NegotiationResponse]
    pagination: Pagination


class BulkResultItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    negotiation_id: int
    success: bool
    error_code: str | None = None
    detail: str | None = None
