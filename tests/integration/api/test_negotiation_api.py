from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from commissions.api.v1 import admin as admin_routes
from commissions.api.v1 import health as health_routes
from commissions.api.v1 import negotiations as negotiation_routes
from commissions.api.v1 import settlements as settlement_routes
from commissions.auth.jwt import create_access_token
from commissions.core.config import get_config
from commissions.core.dependencies import get_db_session
from commissions.main import create_app
from commissions.models import Order
from commissions.schemas.negotiations import (
    AdminResponseRequest,
    BulkResponseRequest,
    ManagerResponseRequest,
    OfferCreateRequest,
)
from commissions.schemas.settlements import CommissionPaidRequest, SettlementQuoteRequest


def _bearer(actor) -> str:
    token = create_access_token(actor.user_id, actor.role.value, secret=get_config().JWT_SECRET)
    return f"Bearer {token}"


def test_health_endpoint_works():
    response = health_routes.health()
    assert response["status"] == "ok"


def test_offer_requires_auth(session):
    with pytest.raises(HTTPException) as exc:
        negotiation_routes.create_offer(OfferCreateRequest(percentage=Decimal("10")), authorization=None, db=session)
    assert exc.value.status_code == 401
    assert exc.value.detail["error_code"] == "unauthenticated"


def test_negotiation_round_trip_through_routes(session, manager, admin, service):
    created = negotiation_routes.create_offer(
        OfferCreateRequest(service_id=service.id, percentage=Decimal("15"), notes="first"),
        authorization=_bearer(manager),
        db=session,
    )
    assert created.status.value == "pending"

    countered = admin_routes.admin_response(
        created.id,
        AdminResponseRequest(action="counter", counter_percentage=Decimal("12")),
        authorization=_bearer(admin),
        db=session,
    )
    assert countered.counter_percentage == Decimal("12.00")

    accepted = negotiation_routes.manager_response(
        created.id,
        ManagerResponseRequest(action="accept"),
        authorization=_bearer(manager),
        db=session,
    )
    assert accepted.final_percentage == Decimal("12.00")
    assert [entry.action.value for entry in accepted.history] == ["offer", "counter", "manager_accept_counter"]

    rate = settlement_routes.effective_rate(service.id, authorization=_bearer(manager), db=session)
    assert rate.percentage == Decimal("12.00")


def test_domain_errors_map_to_http_status(session, manager, admin, service):
    created = negotiation_routes.create_offer(
        OfferCreateRequest(service_id=service.id, percentage=Decimal("15")),
        authorization=_bearer(manager),
        db=session,
    )

    with pytest.raises(HTTPException) as conflict:
        negotiation_routes.create_offer(
            OfferCreateRequest(service_id=service.id, percentage=Decimal("14")),
            authorization=_bearer(manager),
            db=session,
        )
    assert conflict.value.status_code == 409
    assert conflict.value.detail["error_code"] == "conflicting_offer"

    with pytest.raises(HTTPException) as forbidden:
        admin_routes.admin_response(
            created.id, AdminResponseRequest(action="accept"), authorization=_bearer(manager), db=session
        )
    assert forbidden.value.status_code == 403

    with pytest.raises(HTTPException) as invalid:
        admin_routes.admin_response(
            created.id,
            AdminResponseRequest(action="counter", counter_percentage=Decimal("120")),
            authorization=_bearer(admin),
            db=session,
        )
    assert invalid.value.status_code == 422
    assert invalid.value.detail["error_code"] == "invalid_percentage"

    with pytest.raises(HTTPException) as missing:
        negotiation_routes.get_negotiation(999, authorization=_bearer(admin), db=session)
    assert missing.value.status_code == 404


def test_bulk_response_reports_successes_and_failures(session, manager, admin, make_service):
    ids = [
        negotiation_routes.create_offer(
            OfferCreateRequest(service_id=make_service(manager.user_id).id, percentage=Decimal("10")),
            authorization=_bearer(manager),
            db=session,
        ).id
        for _ in range(2)
    ]
    result = admin_routes.bulk_response(
        BulkResponseRequest(negotiation_ids=[*ids, 555], action="reject"),
        authorization=_bearer(admin),
        db=session,
    )
    assert result["succeeded"] == 2
    assert result["failed"] == 1
    assert result["results"][2]["error_code"] == "not_found"


def test_settlement_quote_and_commission_payment(session, manager, admin, service):
    quote = settlement_routes.settlement_quote(
        SettlementQuoteRequest(order_total=Decimal("999.99"), percentage=Decimal("12.5")),
        authorization=_bearer(manager),
    )
    assert quote.commission_amount == Decimal("125.00")
    assert quote.net_amount == Decimal("874.99")

    order = Order(service_id=service.id, total_amount=Decimal("200"))
    session.add(order)
    session.commit()

    with pytest.raises(HTTPException) as forbidden:
        settlement_routes.settle_order(order.id, authorization=_bearer(manager), db=session)
    assert forbidden.value.status_code == 403

    settled = settlement_routes.settle_order(order.id, authorization=_bearer(admin), db=session)
    assert settled.commission_amount == Decimal("0.00")

    paid = admin_routes.mark_commission_paid(
        order.id, CommissionPaidRequest(notes="batch 4"), authorization=_bearer(admin), db=session
    )
    assert paid.commission_status.value == "paid"

    with pytest.raises(HTTPException) as already_paid:
        settlement_routes.settle_order(order.id, authorization=_bearer(admin), db=session)
    assert already_paid.value.status_code == 409
    assert already_paid.value.detail["error_code"] == "commission_already_paid"

    summary = settlement_routes.commission_summary(authorization=_bearer(manager), db=session)
    assert summary["earnings"]["total_orders"] == 1


def test_app_serves_versioned_routes(session_factory, manager):
    app = create_app()

    def _override():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db_session] = _override
    client = TestClient(app)

    assert client.get("/api/v1/health").json()["status"] == "ok"

    unauthenticated = client.get("/api/v1/negotiations")
    assert unauthenticated.status_code == 401
    assert unauthenticated.json()["detail"]["error_code"] == "unauthenticated"

    listing = client.get("/api/v1/negotiations", headers={"Authorization": _bearer(manager)})
    assert listing.status_code == 200
    assert listing.json()["pagination"]["total"] == 0
