"""Actor context extraction and capability checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from commissions.core.exceptions import AuthenticationError, ForbiddenError
from commissions.models.enums import ActorRole


@dataclass(frozen=True)
class Actor:
    """Verified identity performing an operation."""

    user_id: int
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role is ActorRole.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role is ActorRole.MANAGER


def from_claims(claims: dict[str, Any]) -> Actor:
    """Build an actor from decoded token claims."""
    try:
        user_id = int(claims["sub"])
        role = ActorRole(str(claims["role"]).lower())
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Token claims are missing a valid user id or role.") from exc
    return Actor(user_id=user_id, role=role)


def require_manager(actor: Actor) -> None:
    if not actor.is_manager:
        raise ForbiddenError("This operation requires the manager role.")


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise ForbiddenError("This operation requires the admin role.")


def ensure_manager_owns(actor: Actor, manager_id: int) -> None:
    """Manager actions are limited to records the manager owns."""
    require_manager(actor)
    if int(manager_id) != int(actor.user_id):
        raise ForbiddenError("Access denied.")


def ensure_can_view(actor: Actor, manager_id: int) -> None:
    """Admins see everything; managers only their own records."""
    if actor.is_admin:
        return
    ensure_manager_owns(actor, manager_id)
