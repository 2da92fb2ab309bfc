"""Shared authorization and error mapping helpers for API v1 route modules."""

from __future__ import annotations

from fastapi import HTTPException

from commissions.auth.actor import Actor
from commissions.auth.rbac import require_scopes
from commissions.core.config import get_config
from commissions.core.dependencies import get_current_actor
from commissions.core.exceptions import (
    AlreadyFinalizedError,
    AuthenticationError,
    CommissionAlreadyPaidError,
    CommissionError,
    ConflictingOfferError,
    ForbiddenError,
    NoCounterToRespondToError,
    NotFoundError,
    StaleStateError,
    ValidationError,
)
from commissions.schemas.common import ErrorEnvelope

_STATUS_BY_ERROR: tuple[tuple[type[CommissionError], int], ...] = (
    (AuthenticationError, 401),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (ConflictingOfferError, 409),
    (AlreadyFinalizedError, 409),
    (NoCounterToRespondToError, 409),
    (StaleStateError, 409),
    (CommissionAlreadyPaidError, 409),
    (ValidationError, 422),
)


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def authorize(authorization: str | None, scopes: list[str]) -> Actor:
    token = _extract_bearer_token(authorization)
    actor = get_current_actor(token=token, settings=get_config())
    require_scopes(actor.role.value, scopes)
    return actor


def map_domain_error(exc: CommissionError) -> tuple[int, dict]:
    status_code = 500
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status_code = code
            break
    envelope = ErrorEnvelope(error_code=exc.error_code, detail=str(exc) or exc.error_code)
    return status_code, envelope.model_dump()


def http_error(exc: CommissionError) -> HTTPException:
    code, detail = map_domain_error(exc)
    return HTTPException(status_code=code, detail=detail)
