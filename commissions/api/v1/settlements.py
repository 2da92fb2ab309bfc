"""Rate lookup, settlement and earnings endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from commissions.api.v1._authz import authorize, http_error
from commissions.auth.actor import require_manager
from commissions.core.dependencies import get_db_session
from commissions.core.exceptions import CommissionError
from commissions.schemas.settlements import (
    EffectiveRateResponse,
    OrderSettlementResponse,
    SettlementQuoteRequest,
    SettlementQuoteResponse,
)
from commissions.services.analytics_service import CommissionAnalyticsService
from commissions.services.rate_resolver import RateResolver
from commissions.services.settlement_service import SettlementService, quote_settlement

router = APIRouter(tags=["settlements"])


@router.get("/services/{service_id}/effective-rate", response_model=EffectiveRateResponse)
def effective_rate(
    service_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> EffectiveRateResponse:
    try:
        authorize(authorization=authorization, scopes=["rates.read"])
        rate = RateResolver(db=db).resolve(service_id)
    except CommissionError as exc:
        raise http_error(exc) from exc
    return EffectiveRateResponse(
        service_id=service_id,
        percentage=rate.percentage,
        source=rate.source,
        negotiation_id=rate.negotiation_id,
        min_order_value=rate.min_order_value,
        max_order_value=rate.max_order_value,
    )


@router.post("/settlements/quote", response_model=SettlementQuoteResponse)
def settlement_quote(
    payload: SettlementQuoteRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> SettlementQuoteResponse:
    try:
        authorize(authorization=authorization, scopes=["settlements.quote"])
        split = quote_settlement(payload.order_total, payload.percentage)
    except CommissionError as exc:
        raise http_error(exc) from exc
    return SettlementQuoteResponse(
        order_total=payload.order_total,
        percentage=payload.percentage,
        commission_amount=split.commission_amount,
        net_amount=split.net_amount,
    )


@router.post("/orders/{order_id}/settlement", response_model=OrderSettlementResponse)
def settle_order(
    order_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> OrderSettlementResponse:
    try:
        authorize(authorization=authorization, scopes=["settlements.run"])
        result = SettlementService(db=db).settle_order(order_id)
    except CommissionError as exc:
        raise http_error(exc) from exc
    return OrderSettlementResponse.model_validate(result)


@router.get("/managers/me/commission-summary")
def commission_summary(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    try:
        actor = authorize(authorization=authorization, scopes=["summary.read"])
        require_manager(actor)
        analytics = CommissionAnalyticsService(db=db)
        summary = analytics.manager_summary(actor.user_id)
        summary["earnings"] = analytics.earnings_summary(manager_id=actor.user_id)
    except CommissionError as exc:
        raise http_error(exc) from exc
    return summary
