"""Manager-facing negotiation endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from commissions.api.v1._authz import authorize, http_error
from commissions.core.dependencies import get_db_session, get_notifier
from commissions.core.exceptions import CommissionError
from commissions.schemas.common import Pagination
from commissions.schemas.negotiations import (
    ManagerResponseRequest,
    NegotiationPage,
    NegotiationResponse,
    OfferCreateRequest,
    OfferUpdateRequest,
)
from commissions.services.negotiation_service import NegotiationService

router = APIRouter(tags=["negotiations"])


def _service(db: Session) -> NegotiationService:
    return NegotiationService(db=db, notifier=get_notifier())


@router.post("/negotiations", response_model=NegotiationResponse, status_code=status.HTTP_201_CREATED)
def create_offer(
    payload: OfferCreateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NegotiationResponse:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.offer"])
        negotiation = _service(db).create_offer(
            actor,
            percentage=payload.percentage,
            service_id=payload.service_id,
            notes=payload.notes,
            valid_until=payload.valid_until,
            min_order_value=payload.min_order_value,
            max_order_value=payload.max_order_value,
        )
    except CommissionError as exc:
        raise http_error(exc) from exc
    return NegotiationResponse.model_validate(negotiation)


@router.get("/negotiations", response_model=NegotiationPage)
def list_negotiations(
    manager_id: int | None = Query(default=None, ge=1),
    service_id: int | None = Query(default=None, ge=1),
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NegotiationPage:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.read"])
        result = _service(db).list_negotiations(
            actor,
            manager_id=manager_id,
            service_id=service_id,
            status=status_filter,
            page=page,
            limit=limit,
        )
    except CommissionError as exc:
        raise http_error(exc) from exc

    pages = (result.total + result.limit - 1) // result.limit
    return NegotiationPage(
        items=[NegotiationResponse.model_validate(item) for item in result.items],
        pagination=Pagination(page=result.page, limit=result.limit, total=result.total, pages=pages),
    )


@router.get("/negotiations/{negotiation_id}", response_model=NegotiationResponse)
def get_negotiation(
    negotiation_id: int,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NegotiationResponse:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.read"])
        negotiation = _service(db).get_negotiation(actor, negotiation_id)
    except CommissionError as exc:
        raise http_error(exc) from exc
    return NegotiationResponse.model_validate(negotiation)


@router.patch("/negotiations/{negotiation_id}", response_model=NegotiationResponse)
def update_offer(
    negotiation_id: int,
    payload: OfferUpdateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NegotiationResponse:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.offer"])
        negotiation = _service(db).update_offer(
            actor,
            negotiation_id,
            percentage=payload.percentage,
            notes=payload.notes,
            valid_until=payload.valid_until,
            min_order_value=payload.min_order_value,
            max_order_value=payload.max_order_value,
            expected_version=payload.expected_version,
        )
    except CommissionError as exc:
        raise http_error(exc) from exc
    return NegotiationResponse.model_validate(negotiation)


@router.post("/negotiations/{negotiation_id}/manager-response", response_model=NegotiationResponse)
def manager_response(
    negotiation_id: int,
    payload: ManagerResponseRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> NegotiationResponse:
    try:
        actor = authorize(authorization=authorization, scopes=["negotiations.respond"])
        negotiation = _service(db).manager_respond(
            actor,
            negotiation_id,
            payload.action,
            counter_percentage=payload.counter_percentage,
            notes=payload.notes,
            expected_version=payload.expected_version,
        )
    except CommissionError as exc:
        raise http_error(exc) from exc
    return NegotiationResponse.model_validate(negotiation)

