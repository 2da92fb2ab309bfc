from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from commissions.core.exceptions import CommissionAlreadyPaidError, ForbiddenError, NotFoundError
from commissions.models import Order, OrderCommissionStatus
from commissions.services.negotiation_service import NegotiationService
from commissions.services.rate_resolver import RateSource
from commissions.services.settlement_service import SettlementService


@pytest.fixture
def settlements(session, clock):
    return SettlementService(db=session, clock=clock)


def _order(session, service_id, total):
    order = Order(service_id=service_id, total_amount=Decimal(total))
    session.add(order)
    session.commit()
    return order


def _agree(session, clock, manager, admin, percentage, **kwargs):
    negotiations = NegotiationService(db=session, clock=clock)
    negotiation = negotiations.create_offer(manager, percentage, **kwargs)
    return negotiations.admin_respond(admin, negotiation.id, "accept")


def test_settle_order_applies_agreed_rate(settlements, session, clock, manager, admin, service):
    agreement = _agree(session, clock, manager, admin, "15", service_id=service.id)
    order = _order(session, service.id, "1000")

    result = settlements.settle_order(order.id)

    assert result.commission_percentage == Decimal("15.00")
    assert result.commission_amount == Decimal("150.00")
    assert result.net_amount == Decimal("850.00")
    assert result.source is RateSource.SERVICE_CACHE
    assert result.negotiation_id == agreement.id

    session.refresh(order)
    assert order.commission_status == OrderCommissionStatus.PENDING
    assert order.commission_amount == Decimal("150.00")
    assert order.settled_at == clock()


def test_settle_order_without_agreement_keeps_full_total(settlements, session, service):
    order = _order(session, service.id, "999.99")
    result = settlements.settle_order(order.id)
    assert result.commission_amount == Decimal("0.00")
    assert result.net_amount == Decimal("999.99")
    assert result.source is RateSource.NONE
    assert result.negotiation_id is None


def test_order_outside_agreement_bounds_pays_no_commission(settlements, session, clock, manager, admin, service):
    _agree(session, clock, manager, admin, "10", service_id=service.id, min_order_value="100", max_order_value="500")

    small = settlements.settle_order(_order(session, service.id, "50").id)
    inside = settlements.settle_order(_order(session, service.id, "200").id)
    large = settlements.settle_order(_order(session, service.id, "800").id)

    assert small.commission_amount == Decimal("0.00")
    assert inside.commission_amount == Decimal("20.00")
    assert large.commission_amount == Decimal("0.00")


def test_settle_missing_order_is_not_found(settlements):
    with pytest.raises(NotFoundError):
        settlements.settle_order(77)


def test_mark_commission_paid_is_admin_only(settlements, session, manager, admin, service, clock):
    order = _order(session, service.id, "300")
    with pytest.raises(NotFoundError):
        settlements.mark_commission_paid(admin, order.id)

    settlements.settle_order(order.id)
    with pytest.raises(ForbiddenError):
        settlements.mark_commission_paid(manager, order.id)

    paid = settlements.mark_commission_paid(admin, order.id, notes="wire 2026-01")
    assert paid.commission_status == OrderCommissionStatus.PAID
    assert paid.commission_paid_by == admin.user_id
    assert paid.commission_paid_at == clock()
    assert paid.commission_notes == "wire 2026-01"


def test_paid_commission_cannot_be_settled_again(settlements, session, clock, manager, admin, service):
    _agree(session, clock, manager, admin, "10", service_id=service.id)
    order = _order(session, service.id, "400")
    settlements.settle_order(order.id)
    settlements.mark_commission_paid(admin, order.id)

    clock.advance(days=1)
    with pytest.raises(CommissionAlreadyPaidError):
        settlements.settle_order(order.id)

    session.refresh(order)
    assert order.commission_status == OrderCommissionStatus.PAID
    assert order.commission_amount == Decimal("40.00")
    assert order.commission_paid_at == clock() - timedelta(days=1)
    assert order.settled_at == clock() - timedelta(days=1)


def test_unpaid_order_can_be_settled_again(settlements, session, service, clock):
    order = _order(session, service.id, "120")
    settlements.settle_order(order.id)
    clock.advance(hours=2)

    settlements.settle_order(order.id)
    session.refresh(order)
    assert order.commission_status == OrderCommissionStatus.PENDING
    assert order.settled_at == clock()
