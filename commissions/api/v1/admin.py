"""Admin negotiation and commission payment endpoints for API v1."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.orm import Session

from commissions.api.v1._authz import authorize, http_error
from commissions.core.dependencies import get_db_session, get_notifier
from commissions.core.exceptions import CommissionError
from commissions.schemas.negotiations import (
    AdminResponseRequest,
    BulkResponseRequest,
    BulkResultItem,
    NegotiationResponse,
)
from commissions.schemas.settlements import CommissionPaidRequest, OrderCommissionResponse
from commissions.services.analytics_service import CommissionAnalyticsService
from commissions.services.negotiation_service import NegotiationService
from commissions.services.settlement_service import SettlementService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/negotiations/bulk-response")
def bulk_response(
    payload: BulkResponseRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.admin"])
        results = NegotiationService(db=db, notifier=get_notifier()).bulk_admin_respond(
            actor,
            payload.negotiation_ids,
            payload.action,
            counter_percentage=payload.counter_percentage,
            notes=payload.notes,
        )
    except CommissionError as exc:
        raise http_error(exc) from exc

    items = [BulkResultItem.model_validate(result).model_dump() for result in results]
    succeeded = sum(1 for item in items if item["success"])
    return {"results": items, "succeeded": succeeded, "failed": len(items) - succeeded}


@router.get("/negotiations/stats")
def negotiation_stats(
    manager_id: int | None = Query(default=None, ge=1),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> dict:
    try:
        authorize(authorization=authorization, scopes=["negotiations.admin"])
        stats = CommissionAnalyticsService(db=db).negotiation_stats(
            manager_id=manager_id,
            date_from=date_from,
            date_to=date_to,
        )
    except CommissionError as exc:
        raise http_error(exc) from exc
    return {"by_status": stats, "total": sum(row["count"] for row in stats.values())}


@router.post("/negotiations/{negotiation_id}/response", response_model=NegotiationResponse)
def admin_response(
    negotiation_id: int,
    payload: AdminResponseRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NegotiationResponse:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.admin"])
        negotiation = NegotiationService(db=db, notifier=get_notifier()).admin_respond(
            actor,
            negotiation_id,
            payload.action,
            counter_percentage=payload.counter_percentage,
            notes=payload.notes,
            valid_until=payload.valid_until,
            expected_version=payload.expected_version,
        )
    except CommissionError as exc:
        raise http_error(exc) from exc
    return NegotiationResponse.model_validate(negotiation)


@router.post("/negotiations/{negotiation_id}/deactivate", response_model=NegotiationResponse)
def deactivate(
    negotiation_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NegotiationResponse:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.admin"])
        negotiation = NegotiationService(db=db, notifier=get_notifier()).deactivate(actor, negotiation_id)
    except CommissionError as exc:
        raise http_error(exc) from exc
    return NegotiationResponse.model_validate(negotiation)


@router.post("/orders/{order_id}/commission/paid", response_model=OrderCommissionResponse)
def mark_commission_paid(
    order_id: int,
    payload: CommissionPaidRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> OrderCommissionResponse:
    try:
        actor = authorize(authorization=authorization, scopes=["commissions.pay"])
        order = SettlementService(db=db).mark_commission_paid(actor, order_id, notes=payload.notes)
    except CommissionError as exc:
        raise http_error(exc) from exc
    return OrderCommissionResponse.model_validate(order)
