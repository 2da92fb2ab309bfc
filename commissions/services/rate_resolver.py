"""Effective commission rate resolution for a service."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import or_, select

from commissions.core.exceptions import NotFoundError
from commissions.models.enums import NegotiationStatus, ServiceCommissionStatus
from commissions.models.negotiation import Negotiation
from commissions.models.service_listing import ServiceListing
from commissions.services.base_service import BaseService

ZERO = Decimal("0")


class RateSource(str, enum.Enum):
    SERVICE_CACHE = "service_cache"
    SERVICE_AGREEMENT = "service_agreement"
    MANAGER_AGREEMENT = "manager_agreement"
    NONE = "none"


@dataclass(frozen=True)
class ResolvedRate:
    percentage: Decimal
    source: RateSource
    negotiation_id: int | None = None
    min_order_value: Decimal | None = None
    max_order_value: Decimal | None = None

    def applies_to(self, order_total: Decimal) -> bool:
        """Whether the agreement's order-value bounds cover ``order_total``."""
        if self.min_order_value is not None and order_total < self.min_order_value:
            return False
        if self.max_order_value is not None and order_total > self.max_order_value:
            return False
        return True


NO_RATE = ResolvedRate(percentage=ZERO, source=RateSource.NONE)


class RateResolver(BaseService):
    """Resolve the single percentage used to settle orders for a service.

    Precedence, first match wins:

    1. the service's cached agreement, if still inside its validity window;
    2. the newest accepted, active agreement scoped to the service;
    3. the newest accepted, active global agreement of the service's manager;
    4. zero.
    """

    def resolve(self, service_id: int) -> ResolvedRate:
        service = self.db.get(ServiceListing, service_id)
        if service is None:
            raise NotFoundError(f"Service not found: {service_id}")
        now = self.now()

        cached = self._from_service_cache(service, now)
        if cached is not None:
            return cached

        agreement = self._latest_agreement(now, Negotiation.service_id == service.id)
        if agreement is not None:
            return self._to_rate(agreement, RateSource.SERVICE_AGREEMENT)

        agreement = self._latest_agreement(
            now,
            Negotiation.service_id.is_(None),
            Negotiation.manager_id == service.manager_id,
        )
        if agreement is not None:
            return self._to_rate(agreement, RateSource.MANAGER_AGREEMENT)

        return NO_RATE

    def resolve_effective_percentage(self, service_id: int) -> Decimal:
        return self.resolve(service_id).percentage

    def _from_service_cache(self, service: ServiceListing, now: datetime) -> ResolvedRate | None:
        if service.commission_status != ServiceCommissionStatus.AGREED:
            return None
        if service.final_commission_percentage is None:
            return None
        if service.commission_valid_until is not None and service.commission_valid_until <= now:
            return None

        low = high = None
        if service.commission_negotiation_id is not None:
            agreement = self.db.get(Negotiation, service.commission_negotiation_id)
            if agreement is not None:
                low, high = agreement.min_order_value, agreement.max_order_value
        return ResolvedRate(
            percentage=service.final_commission_percentage,
            source=RateSource.SERVICE_CACHE,
            negotiation_id=service.commission_negotiation_id,
            min_order_value=low,
            max_order_value=high,
        )

    def _latest_agreement(self, now: datetime, *scope) -> Negotiation | None:
        return self.db.scalars(
            select(Negotiation)
            .where(
                *scope,
                Negotiation.status == NegotiationStatus.ACCEPTED,
                Negotiation.is_active.is_(True),
                Negotiation.final_percentage.is_not(None),
                or_(Negotiation.valid_from.is_(None), Negotiation.valid_from <= now),
                or_(Negotiation.valid_until.is_(None), Negotiation.valid_until > now),
            )
            .order_by(Negotiation.created_at.desc(), Negotiation.id.desc())
            .limit(1)
        ).first()

    @staticmethod
    def _to_rate(agreement: Negotiation, source: RateSource) -> ResolvedRate:
        return ResolvedRate(
            percentage=agreement.final_percentage,
            source=source,
            negotiation_id=agreement.id,
            min_order_value=agreement.min_order_value,
            max_order_value=agreement.max_order_value,
        )
