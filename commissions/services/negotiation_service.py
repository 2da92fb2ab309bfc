"""Negotiation facade: role checks, atomic transitions and lazy expiry."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from commissions.auth.actor import Actor, ensure_can_view, ensure_manager_owns, require_admin, require_manager
from commissions.core.config import get_config
from commissions.core.exceptions import (
    CommissionError,
    ConflictingOfferError,
    ForbiddenError,
    NotFoundError,
    StaleStateError,
    ValidationError,
)
from commissions.core.logging import LogContext, build_log_event
from commissions.models.base import as_naive_utc
from commissions.models.enums import (
    ACTIVE_STATUSES,
    OPEN_STATUSES,
    HistoryAction,
    NegotiationStatus,
    ResponseAction,
    ServiceCommissionStatus,
)
from commissions.models.negotiation import Negotiation, build_subject_key
from commissions.models.service_listing import ServiceListing
from commissions.orchestration.state_machine import (
    apply_admin_response,
    apply_manager_response,
    is_expired,
    open_negotiation,
    revise_offer,
)
from commissions.services.base_service import BaseService
from commissions.services.notification_service import NegotiationNotifier
from commissions.utils.validators import clean_notes

logger = logging.getLogger(__name__)

_SERVICE_STATUS_BY_NEGOTIATION = {
    NegotiationStatus.PENDING: ServiceCommissionStatus.PENDING,
    NegotiationStatus.NEGOTIATING: ServiceCommissionStatus.NEGOTIATING,
    NegotiationStatus.ACCEPTED: ServiceCommissionStatus.AGREED,
    NegotiationStatus.REJECTED: ServiceCommissionStatus.REJECTED,
}


def lapsed_expiry_statement(now: datetime, *filters):
    """UPDATE moving open negotiations whose window closed before ``now`` to ``expired``."""
    return (
        update(Negotiation)
        .where(
            *filters,
            Negotiation.status.in_(OPEN_STATUSES),
            Negotiation.valid_until.is_not(None),
            Negotiation.valid_until < now,
        )
        .values(status=NegotiationStatus.EXPIRED, version=Negotiation.version + 1, updated_at=now)
        .execution_options(synchronize_session=False)
    )


@dataclass
class Page:
    items: list[Negotiation]
    total: int
    page: int
    limit: int


@dataclass
class BulkResult:
    negotiation_id: int
    success: bool
    error_code: str | None = None
    detail: str | None = None


class NegotiationService(BaseService):
    """Entry point for every negotiation operation.

    Each mutation loads the record, expires it if its window has lapsed,
    validates the transition against the loaded state and commits. The
    ``version`` column makes the commit fail when another writer got there
    first; that failure is rolled back and reported as ``StaleStateError``.
    """

    def __init__(
        self,
        db: Session | None = None,
        notifier: NegotiationNotifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(db=db, clock=clock)
        self.config = get_config()
        self.notifier = notifier or NegotiationNotifier(enabled=self.config.NOTIFY_OUTCOMES)

    # -- commands ---------------------------------------------------------

    def create_offer(
        self,
        actor: Actor,
        percentage,
        service_id: int | None = None,
        notes: str | None = None,
        valid_until: datetime | None = None,
        min_order_value=None,
        max_order_value=None,
    ) -> Negotiation:
        require_manager(actor)
        now = self.now()
        negotiation = open_negotiation(
            manager_id=actor.user_id,
            percentage=percentage,
            now=now,
            service_id=service_id,
            notes=clean_notes(notes),
            valid_until=as_naive_utc(valid_until),
            min_order_value=min_order_value,
            max_order_value=max_order_value,
        )

        service = None
        if service_id is not None:
            service = self.db.get(ServiceListing, service_id)
            if service is None:
                raise NotFoundError(f"Service not found: {service_id}")
            if service.manager_id != actor.user_id:
                raise ForbiddenError("Service not found or access denied.")

        subject_key = build_subject_key(actor.user_id, service_id)
        self._retire_lapsed(subject_key, now)
        if self._find_active(subject_key) is not None:
            self._log_conflict(actor, subject_key)
            raise ConflictingOfferError("An active commission negotiation already exists for this subject.")

        self.db.add(negotiation)
        try:
            self.db.flush()
            if service is not None:
                self._point_service_at(service, negotiation)
            self.db.commit()
        except IntegrityError as exc:
            self.rollback()
            self._log_conflict(actor, subject_key)
            raise ConflictingOfferError(
                "An active commission negotiation already exists for this subject."
            ) from exc

        self._log("negotiation.created", actor, negotiation, action=HistoryAction.OFFER.value)
        return negotiation

    def update_offer(
        self,
        actor: Actor,
        negotiation_id: int,
        percentage,
        notes: str | None = None,
        valid_until: datetime | None = None,
        min_order_value=None,
        max_order_value=None,
        expected_version: int | None = None,
    ) -> Negotiation:
        negotiation = self._load(negotiation_id)
        ensure_manager_owns(actor, negotiation.manager_id)
        self._check_version(negotiation, expected_version)
        self._expire_if_due(negotiation)

        revise_offer(
            negotiation,
            manager_id=actor.user_id,
            percentage=percentage,
            now=self.now(),
            notes=clean_notes(notes),
            valid_until=as_naive_utc(valid_until),
            min_order_value=min_order_value,
            max_order_value=max_order_value,
        )
        self._commit_transition(actor, negotiation)
        self._log("negotiation.offer_updated", actor, negotiation, action=HistoryAction.OFFER_UPDATED.value)
        return negotiation

    def admin_respond(
        self,
        actor: Actor,
        negotiation_id: int,
        action: ResponseAction | str,
        counter_percentage=None,
        notes: str | None = None,
        valid_until: datetime | None = None,
        expected_version: int | None = None,
    ) -> Negotiation:
        require_admin(actor)
        negotiation = self._load(negotiation_id)
        self._check_version(negotiation, expected_version)
        self._expire_if_due(negotiation)

        entry = apply_admin_response(
            negotiation,
            admin_id=actor.user_id,
            action=action,
            now=self.now(),
            counter_percentage=counter_percentage,
            notes=clean_notes(notes),
            valid_until=as_naive_utc(valid_until),
        )
        self._sync_service_cache(negotiation)
        self._commit_transition(actor, negotiation)

        self._log("negotiation.admin_responded", actor, negotiation, action=entry.action.value)
        self.notifier.notify_outcome(negotiation, entry.action, actor)
        return negotiation

    def manager_respond(
        self,
        actor: Actor,
        negotiation_id: int,
        action: ResponseAction | str,
        counter_percentage=None,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> Negotiation:
        require_manager(actor)
        negotiation = self._load(negotiation_id)
        ensure_manager_owns(actor, negotiation.manager_id)
        self._check_version(negotiation, expected_version)
        self._expire_if_due(negotiation)

        entry = apply_manager_response(
            negotiation,
            manager_id=actor.user_id,
            action=action,
            now=self.now(),
            counter_percentage=counter_percentage,
            notes=clean_notes(notes),
        )
        self._sync_service_cache(negotiation)
        self._commit_transition(actor, negotiation)

        self._log("negotiation.manager_responded", actor, negotiation, action=entry.action.value)
        self.notifier.notify_outcome(negotiation, entry.action, actor)
        return negotiation

    def bulk_admin_respond(
        self,
        actor: Actor,
        negotiation_ids: Iterable[int],
        action: ResponseAction | str,
        counter_percentage=None,
        notes: str | None = None,
    ) -> list[BulkResult]:
        """Apply one admin response to many records; failures are reported per id."""
        require_admin(actor)
        results: list[BulkResult] = []
        for negotiation_id in negotiation_ids:
            try:
                self.admin_respond(
                    actor,
                    negotiation_id,
                    action,
                    counter_percentage=counter_percentage,
                    notes=notes,
                )
            except CommissionError as exc:
                results.append(
                    BulkResult(
                        negotiation_id=negotiation_id,
                        success=False,
                        error_code=exc.error_code,
                        detail=str(exc),
                    )
                )
                continue
            results.append(BulkResult(negotiation_id=negotiation_id, success=True))
        return results

    def deactivate(self, actor: Actor, negotiation_id: int) -> Negotiation:
        """Soft-deactivate a record so it no longer counts as the subject's agreement."""
        require_admin(actor)
        negotiation = self._load(negotiation_id)
        if not negotiation.is_active:
            return negotiation

        negotiation.is_active = False
        if negotiation.service_id is not None:
            service = self.db.get(ServiceListing, negotiation.service_id)
            if service is not None and service.commission_negotiation_id == negotiation.id:
                self._clear_service_cache(service)
        self._commit_transition(actor, negotiation)
        self._log("negotiation.deactivated", actor, negotiation)
        return negotiation

    # -- queries ----------------------------------------------------------

    def get_negotiation(self, actor: Actor, negotiation_id: int) -> Negotiation:
        negotiation = self._load(negotiation_id)
        ensure_can_view(actor, negotiation.manager_id)
        self._expire_if_due(negotiation)
        return negotiation

    def list_negotiations(
        self,
        actor: Actor,
        manager_id: int | None = None,
        service_id: int | None = None,
        status: NegotiationStatus | str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page:
        if not actor.is_admin:
            require_manager(actor)
            if manager_id is not None and int(manager_id) != actor.user_id:
                raise ForbiddenError("Managers can only list their own negotiations.")
            manager_id = actor.user_id

        if page < 1:
            raise ValidationError("page must be >= 1.")
        resolved_limit = self.config.DEFAULT_PAGE_SIZE if limit is None else int(limit)
        if resolved_limit < 1:
            raise ValidationError("limit must be >= 1.")
        resolved_limit = min(resolved_limit, self.config.MAX_PAGE_SIZE)
        resolved_status = self._coerce_status(status)

        filters = []
        if manager_id is not None:
            filters.append(Negotiation.manager_id == manager_id)
        if service_id is not None:
            filters.append(Negotiation.service_id == service_id)
        self._expire_matching(filters)
        if resolved_status is not None:
            filters.append(Negotiation.status == resolved_status)

        total = self.db.scalar(select(func.count()).select_from(Negotiation).where(*filters)) or 0
        items = list(
            self.db.scalars(
                select(Negotiation)
                .where(*filters)
                .order_by(Negotiation.created_at.desc(), Negotiation.id.desc())
                .limit(resolved_limit)
                .offset((page - 1) * resolved_limit)
            )
        )
        return Page(items=items, total=total, page=page, limit=resolved_limit)

    # -- internals --------------------------------------------------------

    def _load(self, negotiation_id: int) -> Negotiation:
        negotiation = self.db.get(Negotiation, negotiation_id)
        if negotiation is None:
            raise NotFoundError(f"Negotiation not found: {negotiation_id}")
        return negotiation

    @staticmethod
    def _coerce_status(status: NegotiationStatus | str | None) -> NegotiationStatus | None:
        if status is None or isinstance(status, NegotiationStatus):
            return status
        try:
            return NegotiationStatus(str(status).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown negotiation status: {status}") from exc

    @staticmethod
    def _check_version(negotiation: Negotiation, expected_version: int | None) -> None:
        if expected_version is not None and int(expected_version) != negotiation.version:
            raise StaleStateError(
                f"Negotiation {negotiation.id} is at version {negotiation.version}, not {expected_version}."
            )

    def _find_active(self, subject_key: str) -> Negotiation | None:
        return self.db.scalars(
            select(Negotiation).where(
                Negotiation.subject_key == subject_key,
                Negotiation.status.in_(ACTIVE_STATUSES),
                Negotiation.is_active.is_(True),
            )
        ).first()

    def _expire_if_due(self, negotiation: Negotiation) -> None:
        """Persist the derived ``expired`` status so later reads observe it."""
        now = self.now()
        if not is_expired(negotiation, now):
            return
        self.db.execute(lapsed_expiry_statement(now, Negotiation.id == negotiation.id))
        if negotiation.service_id is not None:
            service = self.db.get(ServiceListing, negotiation.service_id)
            if service is not None and service.commission_negotiation_id == negotiation.id:
                self._clear_service_cache(service)
        self.commit()
        self.db.refresh(negotiation)
        logger.info(
            "negotiation.expired",
            extra=build_log_event(
                "negotiation.expired",
                LogContext(negotiation_id=negotiation.id),
                status=negotiation.status.value,
            ),
        )

    def _expire_matching(self, filters: list) -> None:
        result = self.db.execute(lapsed_expiry_statement(self.now(), *filters))
        if result.rowcount:
            self.commit()
            self.db.expire_all()
            logger.info(
                "negotiation.expired",
                extra=build_log_event("negotiation.expired", LogContext(), count=result.rowcount),
            )

    def _retire_lapsed(self, subject_key: str, now: datetime) -> None:
        """Expire lapsed open records and deactivate lapsed agreements for a subject."""
        self.db.execute(lapsed_expiry_statement(now, Negotiation.subject_key == subject_key))
        lapsed = self.db.scalars(
            select(Negotiation).where(
                Negotiation.subject_key == subject_key,
                Negotiation.status == NegotiationStatus.ACCEPTED,
                Negotiation.is_active.is_(True),
                Negotiation.valid_until.is_not(None),
                Negotiation.valid_until < now,
            )
        ).all()
        for agreement in lapsed:
            agreement.is_active = False
            if agreement.service_id is not None:
                service = self.db.get(ServiceListing, agreement.service_id)
                if service is not None and service.commission_negotiation_id == agreement.id:
                    self._clear_service_cache(service)
        self.commit()

    @staticmethod
    def _point_service_at(service: ServiceListing, negotiation: Negotiation) -> None:
        service.commission_status = _SERVICE_STATUS_BY_NEGOTIATION.get(
            negotiation.status, ServiceCommissionStatus.NONE
        )
        service.commission_negotiation_id = negotiation.id
        if negotiation.status == NegotiationStatus.ACCEPTED:
            service.final_commission_percentage = negotiation.final_percentage
            service.commission_valid_until = negotiation.valid_until
        else:
            service.final_commission_percentage = None
            service.commission_valid_until = None

    @staticmethod
    def _clear_service_cache(service: ServiceListing) -> None:
        service.commission_status = ServiceCommissionStatus.NONE
        service.commission_negotiation_id = None
        service.final_commission_percentage = None
        service.commission_valid_until = None

    def _sync_service_cache(self, negotiation: Negotiation) -> None:
        """Keep the service's cached agreement in the same transaction as the transition."""
        if negotiation.service_id is None:
            return
        service = self.db.get(ServiceListing, negotiation.service_id)
        if service is None:
            return
        self._point_service_at(service, negotiation)

    def _commit_transition(self, actor: Actor, negotiation: Negotiation) -> None:
        negotiation_id = negotiation.id
        try:
            self.db.commit()
        except (StaleDataError, IntegrityError) as exc:
            self.db.rollback()
            logger.warning(
                "negotiation.stale_write",
                extra=build_log_event(
                    "negotiation.stale_write",
                    LogContext(actor.user_id, actor.role.value, negotiation_id),
                ),
            )
            raise StaleStateError(
                f"Negotiation {negotiation_id} was modified concurrently; reload and retry."
            ) from exc

    def _log(self, event: str, actor: Actor, negotiation: Negotiation, **fields) -> None:
        logger.info(
            event,
            extra=build_log_event(
                event,
                LogContext(actor.user_id, actor.role.value, negotiation.id),
                status=negotiation.status.value,
                **fields,
            ),
        )

    def _log_conflict(self, actor: Actor, subject_key: str) -> None:
        logger.warning(
            "negotiation.conflicting_offer",
            extra=build_log_event(
                "negotiation.conflicting_offer",
                LogContext(actor.user_id, actor.role.value),
                subject=subject_key,
            ),
        )
