"""Service listing model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from commissions.models.base import AuditMixin, Base
from commissions.models.enums import ServiceCommissionStatus
from commissions.models.negotiation import enum_column


class ServiceListing(Base, AuditMixin):
    """Listed service owned by a manager.

    The ``commission_*`` columns cache the current agreement so settlement can
    resolve a rate without scanning negotiations.
    """

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    manager_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    base_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    commission_status: Mapped[ServiceCommissionStatus] = mapped_column(
        enum_column(ServiceCommissionStatus), default=ServiceCommissionStatus.NONE, nullable=False
    )
    final_commission_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    commission_negotiation_id: Mapped[int | None] = mapped_column(Integer)
    commission_valid_until: Mapped[datetime | None] = mapped_column(DateTime)
