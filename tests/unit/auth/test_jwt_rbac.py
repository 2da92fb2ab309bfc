from __future__ import annotations

import base64
from datetime import timedelta

import pytest

from commissions.auth.actor import Actor, ensure_can_view, ensure_manager_owns, from_claims
from commissions.auth.jwt import create_access_token, decode_jwt, encode_jwt
from commissions.auth.rbac import has_scopes, require_scopes
from commissions.core.exceptions import AuthenticationError, ForbiddenError
from commissions.models.enums import ActorRole


def test_jwt_roundtrip_contains_required_claims():
    token = create_access_token(user_id=10, role="manager", secret="test-secret")
    claims = decode_jwt(token, secret="test-secret")
    assert claims["sub"] == "10"
    assert claims["role"] == "manager"
    assert "exp" in claims
    assert "iat" in claims
    assert "jti" in claims


def test_jwt_rejects_tampered_and_expired_tokens():
    token = create_access_token(user_id=10, role="manager", secret="test-secret")
    with pytest.raises(AuthenticationError):
        decode_jwt(token, secret="other-secret")

    expired = encode_jwt({"sub": "10", "role": "admin"}, secret="test-secret", ttl=timedelta(minutes=-5))
    with pytest.raises(AuthenticationError, match="expired"):
        decode_jwt(expired, secret="test-secret")


def test_actor_from_claims_requires_known_role():
    actor = from_claims({"sub": "4", "role": "ADMIN"})
    assert actor == Actor(user_id=4, role=ActorRole.ADMIN)

    with pytest.raises(AuthenticationError):
        from_claims({"sub": "4", "role": "viewer"})
    with pytest.raises(AuthenticationError):
        from_claims({"role": "manager"})


def test_rbac_blocks_missing_scope():
    require_scopes("manager", ["negotiations.offer"])
    assert has_scopes("admin", ["negotiations.admin"]) is True
    with pytest.raises(ForbiddenError):
        require_scopes("manager", ["negotiations.admin"])


def test_managers_only_touch_their_own_records():
    manager = Actor(user_id=7, role=ActorRole.MANAGER)
    admin = Actor(user_id=1, role=ActorRole.ADMIN)

    ensure_manager_owns(manager, 7)
    ensure_can_view(admin, 7)
    with pytest.raises(ForbiddenError):
        ensure_manager_owns(manager, 8)
    with pytest.raises(ForbiddenError):
        ensure_can_view(manager, 8)


def test_jwt_rejects_unsigned_algorithm_and_malformed_tokens():
    token = create_access_token(user_id=10, role="admin", secret="test-secret")
    _, payload_segment, signature_segment = token.split(".")
    none_header = base64.urlsafe_b64encode(b'{"alg":"none","typ":"JWT"}').decode("ascii").rstrip("=")

    with pytest.raises(AuthenticationError, match="algorithm"):
        decode_jwt(f"{none_header}.{payload_segment}.{signature_segment}", secret="test-secret")
    with pytest.raises(AuthenticationError, match="format"):
        decode_jwt("not-a-token", secret="test-secret")
    with pytest.raises(AuthenticationError, match="secret"):
        decode_jwt(token, secret="")
