"""Negotiation state transitions.

Everything in this module is pure: functions validate an action against the
state of a :class:`Negotiation` instance and then mutate that instance and
append its history entry. Nothing here talks to the database; persistence and
concurrency control live in the service facade.

Validation always completes before the first field is written, so a rejected
transition leaves the record, including its history, untouched.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from commissions.core.exceptions import (
    AlreadyFinalizedError,
    InvalidPercentageError,
    NoCounterToRespondToError,
    ValidationError,
)
from commissions.models.enums import (
    ActorRole,
    HistoryAction,
    NegotiationStatus,
    OfferType,
    ResponseAction,
)
from commissions.models.negotiation import Negotiation, NegotiationHistoryEntry, build_subject_key

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


class InvalidTransitionError(ValueError):
    """Raised when a disallowed state transition is attempted."""


class StateMachine:
    """Table-driven transition check shared by negotiation helpers."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")


NEGOTIATION_TRANSITIONS: dict[str, set[str]] = {
    NegotiationStatus.PENDING.value: {
        NegotiationStatus.PENDING.value,
        NegotiationStatus.NEGOTIATING.value,
        NegotiationStatus.ACCEPTED.value,
        NegotiationStatus.REJECTED.value,
        NegotiationStatus.EXPIRED.value,
    },
    NegotiationStatus.NEGOTIATING.value: {
        NegotiationStatus.NEGOTIATING.value,
        NegotiationStatus.PENDING.value,
        NegotiationStatus.ACCEPTED.value,
        NegotiationStatus.REJECTED.value,
        NegotiationStatus.EXPIRED.value,
    },
    NegotiationStatus.ACCEPTED.value: set(),
    NegotiationStatus.REJECTED.value: set(),
    NegotiationStatus.EXPIRED.value: set(),
}

negotiation_state_machine = StateMachine(NEGOTIATION_TRANSITIONS)


def _to_percentage(value, field_name: str) -> Decimal:
    if value is None:
        raise InvalidPercentageError(f"{field_name} is required.")
    if isinstance(value, bool):
        raise InvalidPercentageError(f"{field_name} must be a number.")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidPercentageError(f"{field_name} must be a number.") from exc
    if not number.is_finite():
        raise InvalidPercentageError(f"{field_name} must be a finite number.")
    return number.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_offer_percentage(value) -> Decimal:
    """Offers may be anywhere in [0, 100]."""
    number = _to_percentage(value, "percentage")
    if number < 0 or number > HUNDRED:
        raise InvalidPercentageError("Commission percentage must be between 0 and 100.")
    return number


def validate_counter_percentage(value) -> Decimal:
    """Counters must be in (0, 100]; zero would mean no offer at all."""
    number = _to_percentage(value, "counter_percentage")
    if number <= 0 or number > HUNDRED:
        raise InvalidPercentageError("Counter percentage must be greater than 0 and at most 100.")
    return number


def coerce_action(action: ResponseAction | str) -> ResponseAction:
    if isinstance(action, ResponseAction):
        return action
    try:
        return ResponseAction(str(action).strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unsupported action: {action}") from exc


def _validate_order_bounds(min_order_value, max_order_value) -> tuple[Decimal | None, Decimal | None]:
    bounds: list[Decimal | None] = []
    for name, value in (("min_order_value", min_order_value), ("max_order_value", max_order_value)):
        if value is None:
            bounds.append(None)
            continue
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"{name} must be a number.") from exc
        if not number.is_finite() or number < 0:
            raise ValidationError(f"{name} must be a non-negative number.")
        bounds.append(number.quantize(CENT, rounding=ROUND_HALF_UP))
    low, high = bounds
    if low is not None and high is not None and low > high:
        raise ValidationError("min_order_value must not exceed max_order_value.")
    return low, high


def is_expired(negotiation: Negotiation, now: datetime) -> bool:
    """True when an open negotiation has outlived its validity window."""
    return (
        negotiation.is_open
        and negotiation.valid_until is not None
        and negotiation.valid_until < now
    )


def _ensure_mutable(negotiation: Negotiation, now: datetime) -> None:
    if negotiation.is_terminal or is_expired(negotiation, now):
        raise AlreadyFinalizedError(
            f"Negotiation {negotiation.id} has already been finalized ({negotiation.status.value})."
        )


def _move(negotiation: Negotiation, target: NegotiationStatus) -> None:
    negotiation_state_machine.assert_transition(negotiation.status.value, target.value)
    negotiation.status = target


def open_negotiation(
    manager_id: int,
    percentage,
    now: datetime,
    service_id: int | None = None,
    notes: str | None = None,
    valid_until: datetime | None = None,
    min_order_value=None,
    max_order_value=None,
) -> Negotiation:
    """Build a new pending negotiation carrying the manager's first offer."""
    offered = validate_offer_percentage(percentage)
    low, high = _validate_order_bounds(min_order_value, max_order_value)
    if valid_until is not None and valid_until <= now:
        raise ValidationError("valid_until must be in the future.")

    negotiation = Negotiation(
        manager_id=manager_id,
        service_id=service_id,
        subject_key=build_subject_key(manager_id, service_id),
        offered_percentage=offered,
        status=NegotiationStatus.PENDING,
        offer_type=OfferType.MANAGER_OFFER,
        valid_from=now,
        valid_until=valid_until,
        is_active=True,
        min_order_value=low,
        max_order_value=high,
        created_at=now,
        updated_at=now,
    )
    negotiation.add_history_entry(
        HistoryAction.OFFER, manager_id, ActorRole.MANAGER, now, percentage=offered, notes=notes
    )
    return negotiation


def revise_offer(
    negotiation: Negotiation,
    manager_id: int,
    percentage,
    now: datetime,
    notes: str | None = None,
    valid_until: datetime | None = None,
    min_order_value=None,
    max_order_value=None,
) -> NegotiationHistoryEntry:
    """Replace the live offer while the admin has not answered yet.

    Terms are replaced wholesale, so omitted bounds and validity are cleared.
    """
    _ensure_mutable(negotiation, now)
    if negotiation.status != NegotiationStatus.PENDING:
        raise ValidationError("Only pending offers can be updated; respond to the admin counter instead.")
    offered = validate_offer_percentage(percentage)
    low, high = _validate_order_bounds(min_order_value, max_order_value)
    if valid_until is not None and valid_until <= now:
        raise ValidationError("valid_until must be in the future.")

    _move(negotiation, NegotiationStatus.PENDING)
    negotiation.offered_percentage = offered
    negotiation.valid_until = valid_until
    negotiation.min_order_value = low
    negotiation.max_order_value = high
    return negotiation.add_history_entry(
        HistoryAction.OFFER_UPDATED, manager_id, ActorRole.MANAGER, now, percentage=offered, notes=notes
    )


def apply_admin_response(
    negotiation: Negotiation,
    admin_id: int,
    action: ResponseAction | str,
    now: datetime,
    counter_percentage=None,
    notes: str | None = None,
    valid_until: datetime | None = None,
) -> NegotiationHistoryEntry:
    """Admin accepts, rejects or counters a pending/negotiating record.

    ``accept`` commits the manager's currently live ``offered_percentage``.
    """
    resolved = coerce_action(action)
    _ensure_mutable(negotiation, now)
    counter = validate_counter_percentage(counter_percentage) if resolved is ResponseAction.COUNTER else None
    if valid_until is not None and valid_until <= now:
        raise ValidationError("valid_until must be in the future.")

    negotiation.admin_responded_by = admin_id
    negotiation.admin_responded_at = now
    negotiation.admin_notes = notes
    if valid_until is not None:
        negotiation.valid_until = valid_until

    if resolved is ResponseAction.ACCEPT:
        _move(negotiation, NegotiationStatus.ACCEPTED)
        negotiation.final_percentage = negotiation.offered_percentage
        negotiation.offer_type = OfferType.FINAL_AGREEMENT
        negotiation.agreed_at = now
        negotiation.agreed_by = admin_id
        return negotiation.add_history_entry(
            HistoryAction.ACCEPT,
            admin_id,
            ActorRole.ADMIN,
            now,
            percentage=negotiation.final_percentage,
            notes=notes,
        )

    if resolved is ResponseAction.REJECT:
        _move(negotiation, NegotiationStatus.REJECTED)
        return negotiation.add_history_entry(HistoryAction.REJECT, admin_id, ActorRole.ADMIN, now, notes=notes)

    _move(negotiation, NegotiationStatus.NEGOTIATING)
    negotiation.counter_percentage = counter
    negotiation.offer_type = OfferType.ADMIN_COUNTER
    return negotiation.add_history_entry(
        HistoryAction.COUNTER, admin_id, ActorRole.ADMIN, now, percentage=counter, notes=notes
    )


def apply_manager_response(
    negotiation: Negotiation,
    manager_id: int,
    action: ResponseAction | str,
    now: datetime,
    counter_percentage=None,
    notes: str | None = None,
) -> NegotiationHistoryEntry:
    """Manager answers the admin's live counter."""
    resolved = coerce_action(action)
    _ensure_mutable(negotiation, now)
    if negotiation.status != NegotiationStatus.NEGOTIATING or negotiation.counter_percentage is None:
        raise NoCounterToRespondToError("No admin counter offer to respond to.")
    counter = validate_counter_percentage(counter_percentage) if resolved is ResponseAction.COUNTER else None

    negotiation.manager_response = resolved.value
    negotiation.manager_notes = notes
    negotiation.manager_responded_at = now

    if resolved is ResponseAction.ACCEPT:
        _move(negotiation, NegotiationStatus.ACCEPTED)
        negotiation.final_percentage = negotiation.counter_percentage
        negotiation.offer_type = OfferType.FINAL_AGREEMENT
        negotiation.agreed_at = now
        negotiation.agreed_by = manager_id
        return negotiation.add_history_entry(
            HistoryAction.MANAGER_ACCEPT_COUNTER,
            manager_id,
            ActorRole.MANAGER,
            now,
            percentage=negotiation.final_percentage,
            notes=notes,
        )

    if resolved is ResponseAction.REJECT:
        _move(negotiation, NegotiationStatus.REJECTED)
        return negotiation.add_history_entry(
            HistoryAction.MANAGER_REJECT_COUNTER, manager_id, ActorRole.MANAGER, now, notes=notes
        )

    # A manager counter opens a fresh round: the admin's counter and response
    # metadata no longer describe the live offer.
    _move(negotiation, NegotiationStatus.PENDING)
    negotiation.offered_percentage = counter
    negotiation.counter_percentage = None
    negotiation.admin_notes = None
    negotiation.admin_responded_by = None
    negotiation.admin_responded_at = None
    negotiation.offer_type = OfferType.MANAGER_OFFER
    return negotiation.add_history_entry(
        HistoryAction.MANAGER_COUNTER, manager_id, ActorRole.MANAGER, now, percentage=counter, notes=notes
    )
