"""Bearer tokens for managers and admins, signed with HS256."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from commissions.core.exceptions import AuthenticationError

_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _encode_segment(document: dict[str, Any]) -> str:
    return _b64url_encode(json.dumps(document, separators=(",", ":"), sort_keys=True).encode("utf-8"))


def _decode_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        document = json.loads(_b64url_decode(segment))
    except ValueError as exc:
        raise AuthenticationError(f"Invalid token {name}.") from exc
    if not isinstance(document, dict):
        raise AuthenticationError(f"Invalid token {name}.")
    return document


def _signature(signing_input: str, secret: str) -> str:
    return _b64url_encode(hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest())


def _require_secret(secret: str) -> None:
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")


def encode_jwt(payload: dict[str, Any], secret: str, ttl: timedelta) -> str:
    _require_secret(secret)
    issued = datetime.now(timezone.utc)
    claims = {
        "iat": int(issued.timestamp()),
        "exp": int((issued + ttl).timestamp()),
        "jti": uuid.uuid4().hex,
        **payload,
    }
    signing_input = f"{_encode_segment(_HEADER)}.{_encode_segment(claims)}"
    return f"{signing_input}.{_signature(signing_input, secret)}"


def decode_jwt(token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
    """Return the claims of a token signed with ``secret``.

    Only HS256 headers are accepted. ``exp`` is mandatory unless ``verify_exp``
    is switched off.
    """
    _require_secret(secret)
    segments = token.split(".")
    if len(segments) != 3:
        raise AuthenticationError("Invalid token format.")
    header_segment, payload_segment, signature_segment = segments

    if _decode_segment(header_segment, "header").get("alg") != "HS256":
        raise AuthenticationError("Unsupported token algorithm.")
    expected = _signature(f"{header_segment}.{payload_segment}", secret)
    if not hmac.compare_digest(expected, signature_segment):
        raise AuthenticationError("Invalid token signature.")

    claims = _decode_segment(payload_segment, "payload")
    if verify_exp:
        if "exp" not in claims:
            raise AuthenticationError("Token is missing exp claim.")
        if int(claims["exp"]) < int(datetime.now(timezone.utc).timestamp()):
            raise AuthenticationError("Token has expired.")
    return claims


def create_access_token(user_id: int, role: str, secret: str, ttl_minutes: int = 60) -> str:
    return encode_jwt({"sub": str(user_id), "role": role}, secret=secret, ttl=timedelta(minutes=ttl_minutes))
