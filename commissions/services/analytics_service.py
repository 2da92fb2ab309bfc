"""Read-only commission reporting."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, or_, select

from commissions.models.base import as_naive_utc
from commissions.models.enums import NegotiationStatus, OrderCommissionStatus
from commissions.models.negotiation import Negotiation
from commissions.models.order import Order
from commissions.models.service_listing import ServiceListing
from commissions.services.base_service import BaseService
from commissions.services.negotiation_service import lapsed_expiry_statement

ZERO = Decimal("0")


def _as_decimal(value) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))


class CommissionAnalyticsService(BaseService):
    """Aggregates over negotiations and settled orders."""

    def negotiation_stats(
        self,
        manager_id: int | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> dict[str, dict[str, Any]]:
        """Per-status counts and percentage averages."""
        filters = []
        if manager_id is not None:
            filters.append(Negotiation.manager_id == manager_id)
        if date_from is not None:
            filters.append(Negotiation.created_at >= as_naive_utc(date_from))
        if date_to is not None:
            filters.append(Negotiation.created_at <= as_naive_utc(date_to))

        self._expire_lapsed(manager_id)

        rows = self.db.execute(
            select(
                Negotiation.status,
                func.count(Negotiation.id),
                func.avg(Negotiation.offered_percentage),
                func.avg(Negotiation.counter_percentage),
                func.avg(Negotiation.final_percentage),
                func.min(Negotiation.offered_percentage),
                func.max(Negotiation.offered_percentage),
            )
            .where(*filters)
            .group_by(Negotiation.status)
        ).all()

        stats: dict[str, dict[str, Any]] = {}
        for status, count, avg_offered, avg_counter, avg_final, min_offered, max_offered in rows:
            key = status.value if isinstance(status, NegotiationStatus) else str(status)
            stats[key] = {
                "count": int(count),
                "avg_offered": _as_decimal(avg_offered),
                "avg_counter": _as_decimal(avg_counter),
                "avg_final": _as_decimal(avg_final),
                "min_offered": _as_decimal(min_offered),
                "max_offered": _as_decimal(max_offered),
            }
        return stats

    def _expire_lapsed(self, manager_id: int | None) -> None:
        filters = [] if manager_id is None else [Negotiation.manager_id == manager_id]
        if self.db.execute(lapsed_expiry_statement(self.now(), *filters)).rowcount:
            self.commit()

    def manager_summary(self, manager_id: int) -> dict[str, Any]:
        order_row = self.db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_amount), 0),
                func.avg(Order.total_amount),
            )
            .join(ServiceListing, Order.service_id == ServiceListing.id)
            .where(ServiceListing.manager_id == manager_id)
        ).one()

        now = self.now()
        agreements = self.db.scalars(
            select(Negotiation)
            .where(
                Negotiation.manager_id == manager_id,
                Negotiation.status == NegotiationStatus.ACCEPTED,
                Negotiation.is_active.is_(True),
                or_(Negotiation.valid_until.is_(None), Negotiation.valid_until > now),
            )
            .order_by(Negotiation.created_at.desc(), Negotiation.id.desc())
        ).all()

        return {
            "negotiations": self.negotiation_stats(manager_id=manager_id),
            "orders": {
                "total_orders": int(order_row[0]),
                "total_revenue": _as_decimal(order_row[1]) or ZERO,
                "avg_order_value": _as_decimal(order_row[2]) or ZERO,
            },
            "active_agreements": [
                {
                    "negotiation_id": agreement.id,
                    "service_id": agreement.service_id,
                    "percentage": agreement.final_percentage,
                    "valid_until": agreement.valid_until,
                }
                for agreement in agreements
            ],
        }

    def earnings_summary(self, manager_id: int | None = None) -> dict[str, Any]:
        """Totals over settled orders, split by commission payment status."""
        query = select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0),
            func.coalesce(func.sum(Order.commission_amount), 0),
            func.coalesce(
                func.sum(
                    case(
                        (Order.commission_status == OrderCommissionStatus.PENDING, Order.commission_amount),
                        else_=0,
                    )
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case(
                        (Order.commission_status == OrderCommissionStatus.PAID, Order.commission_amount),
                        else_=0,
                    )
                ),
                0,
            ),
        ).where(Order.commission_status.is_not(None))
        if manager_id is not None:
            query = query.join(ServiceListing, Order.service_id == ServiceListing.id).where(
                ServiceListing.manager_id == manager_id
            )

        total_orders, order_value, commission, pending, paid = self.db.execute(query).one()
        return {
            "total_orders": int(total_orders),
            "total_order_value": _as_decimal(order_value),
            "total_commission": _as_decimal(commission),
            "pending_commission": _as_decimal(pending),
            "paid_commission": _as_decimal(paid),
        }
