"""Order settlement and commission bookkeeping."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from commissions.auth.actor import Actor, require_admin
from commissions.core.exceptions import (
    CommissionAlreadyPaidError,
    InvalidPercentageError,
    NotFoundError,
    ValidationError,
)
from commissions.core.logging import LogContext, build_log_event
from commissions.models.enums import OrderCommissionStatus
from commissions.models.order import Order
from commissions.services.base_service import BaseService
from commissions.services.rate_resolver import RateResolver, RateSource
from commissions.services.settlement import HUNDRED, ZERO, Settlement, compute_settlement, to_decimal
from commissions.utils.validators import clean_notes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderSettlement:
    order_id: int
    service_id: int
    order_total: Decimal
    commission_percentage: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    source: RateSource
    negotiation_id: int | None


def quote_settlement(order_total, percentage) -> Settlement:
    """Validated entry point for ad-hoc split quotes."""
    total = to_decimal(order_total, "order_total")
    rate = to_decimal(percentage, "percentage")
    if total < ZERO:
        raise ValidationError("order_total must not be negative.")
    if rate < ZERO or rate > HUNDRED:
        raise InvalidPercentageError("Commission percentage must be between 0 and 100.")
    return compute_settlement(total, rate)


class SettlementService(BaseService):
    """Apply the resolved rate to orders and track commission payment status."""

    def __init__(self, db: Session | None = None, clock: Callable[[], datetime] | None = None) -> None:
        super().__init__(db=db, clock=clock)
        self.resolver = RateResolver(db=self.db, clock=self._clock)

    def settle_order(self, order_id: int) -> OrderSettlement:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError(f"Order not found: {order_id}")
        if order.commission_status is OrderCommissionStatus.PAID:
            raise CommissionAlreadyPaidError(f"Commission for order {order_id} has already been paid.")

        total = to_decimal(order.total_amount, "total_amount")
        if total < ZERO:
            raise ValidationError("Order total must not be negative.")

        rate = self.resolver.resolve(order.service_id)
        percentage = rate.percentage if rate.applies_to(total) else ZERO
        split = compute_settlement(total, percentage)

        order.commission_percentage = percentage
        order.commission_amount = split.commission_amount
        order.net_amount = split.net_amount
        order.commission_status = OrderCommissionStatus.PENDING
        order.commission_negotiation_id = rate.negotiation_id if percentage > ZERO else None
        order.settled_at = self.now()
        self.commit()

        logger.info(
            "settlement.order_settled",
            extra=build_log_event(
                "settlement.order_settled",
                LogContext(negotiation_id=order.commission_negotiation_id),
                order_id=order.id,
                service_id=order.service_id,
            ),
        )
        return OrderSettlement(
            order_id=order.id,
            service_id=order.service_id,
            order_total=total,
            commission_percentage=percentage,
            commission_amount=split.commission_amount,
            net_amount=split.net_amount,
            source=rate.source if percentage > ZERO else RateSource.NONE,
            negotiation_id=order.commission_negotiation_id,
        )

    def mark_commission_paid(self, actor: Actor, order_id: int, notes: str | None = None) -> Order:
        require_admin(actor)
        order = self.db.get(Order, order_id)
        if order is None or order.commission_status is None:
            raise NotFoundError(f"Order or commission not found: {order_id}")

        order.commission_status = OrderCommissionStatus.PAID
        order.commission_paid_at = self.now()
        order.commission_paid_by = actor.user_id
        order.commission_notes = clean_notes(notes)
        self.commit()

        logger.info(
            "settlement.commission_paid",
            extra=build_log_event(
                "settlement.commission_paid",
                LogContext(actor.user_id, actor.role.value),
                order_id=order.id,
            ),
        )
        return order
