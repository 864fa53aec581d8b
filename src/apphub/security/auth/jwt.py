"""
Signed bearer tokens for the launcher API.

Tokens are compact HS256 JWTs. Besides ``sub``/``iat``/``exp`` an access
token carries ``ver``, which must equal ``User.token_version`` when the
token is presented; logout and password changes bump that counter.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

_HEADER = {"alg": "HS256", "typ": "JWT"}


class JWTError(ValueError):
    pass


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    token_version: int
    expires_at: int
    role: Optional[str] = None


def _b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _unb64(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _json_segment(data: Dict[str, Any]) -> str:
    return _b64(json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8"))


def _signature(message: str, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message.encode("ascii"), hashlib.sha256).digest()


def encode_hs256(payload: Dict[str, Any], *, secret: str) -> str:
    message = f"{_json_segment(_HEADER)}.{_json_segment(payload)}"
    return f"{message}.{_b64(_signature(message, secret))}"


def decode_hs256(token: str, *, secret: str, leeway_seconds: int = 0) -> Dict[str, Any]:
    parts = token.split(".")
    if len(parts) != 3:
        raise JWTError("Invalid token format")

    try:
        header = json.loads(_unb64(parts[0]))
        payload = json.loads(_unb64(parts[1]))
        signature = _unb64(parts[2])
    except (ValueError, TypeError) as e:
        raise JWTError("Invalid token encoding") from e

    if not isinstance(header, dict) or header.get("alg") != "HS256":
        raise JWTError("Unsupported alg")
    if not isinstance(payload, dict):
        raise JWTError("Invalid token payload")
    if not hmac.compare_digest(_signature(f"{parts[0]}.{parts[1]}", secret), signature):
        raise JWTError("Invalid signature")

    if "exp" in payload:
        try:
            expires_at = int(payload["exp"])
        except (TypeError, ValueError) as e:
            raise JWTError("Invalid exp claim") from e
        if int(time.time()) > expires_at + int(leeway_seconds):
            raise JWTError("Token expired")
    return payload


def issue_access_token(
    *,
    user_id: int,
    secret: str,
    token_version: int = 0,
    role: Optional[str] = None,
    ttl_seconds: int = 3600,
    now: Optional[int] = None,
) -> str:
    issued_at = int(time.time()) if now is None else int(now)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "ver": int(token_version),
        "iat": issued_at,
        "exp": issued_at + int(ttl_seconds),
    }
    if role:
        payload["role"] = role
    return encode_hs256(payload, secret=secret)


def read_access_token(token: str, *, secret: str, leeway_seconds: int = 0) -> AccessClaims:
    """Verify ``token`` and return its claims; raises JWTError on any defect."""
    payload = decode_hs256(token, secret=secret, leeway_seconds=leeway_seconds)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        raise JWTError("Invalid sub claim") from e
    try:
        version = int(payload.get("ver", 0))
    except (TypeError, ValueError) as e:
        raise JWTError("Invalid ver claim") from e
    return AccessClaims(
        user_id=user_id,
        token_version=version,
        expires_at=int(payload.get("exp", 0)),
        role=payload.get("role"),
    )
