"""Rate, settlement and summary schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from commissions.models.enums import OrderCommissionStatus
from commissions.services.rate_resolver import RateSource
from commissions.utils.validators import NOTES_MAX_LEN


class EffectiveRateResponse(BaseModel):
    service_id: int
    percentage: Decimal
    source: RateSource
    negotiation_id: int | None = None
    min_order_value: Decimal | None = None
    max_order_value: Decimal | None = None


class SettlementQuoteRequest(BaseModel):
    order_total: Decimal
    percentage: Decimal


class SettlementQuoteResponse(BaseModel):
    order_total: Decimal
    percentage: Decimal
    commission_amount: Decimal
    net_amount: Decimal


class OrderSettlementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_id: int
    service_id: int
    order_total: Decimal
    commission_percentage: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    source: RateSource
    negotiation_id: int | None = None


class CommissionPaidRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LEN)


class OrderCommissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    service_id: int
    total_amount: Decimal
    commission_percentage: Decimal | None = None
    commission_amount: Decimal | None = None
    net_amount: Decimal | None = None
    commission_status: OrderCommissionStatus | None = None
    commission_paid_at: datetime | None = None
    commission_paid_by: int | None = None
    commission_notes: str | None = None
