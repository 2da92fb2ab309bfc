"""Order model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commissions.models.base import AuditMixin, Base
from commissions.models.enums import OrderCommissionStatus
from commissions.models.negotiation import enum_column


class Order(Base, AuditMixin):
    __tablename__ = "orders"
    __table_args__ = (Index("idx_orders_service_commission_status", "service_id", "commission_status"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id", ondelete="RESTRICT"), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    commission_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    commission_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    commission_status: Mapped[OrderCommissionStatus | None] = mapped_column(enum_column(OrderCommissionStatus))
    commission_negotiation_id: Mapped[int | None] = mapped_column(Integer)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime)
    commission_paid_at: Mapped[datetime | None] = mapped_column(DateTime)
    commission_paid_by: Mapped[int | None] = mapped_column(Integer)
    commission_notes: Mapped[str | None] = mapped_column(Text)

    service = relationship("ServiceListing")
