"""
PBKDF2-SHA256 password hashing.

Stored format: ``pbkdf2_sha256$<iterations>$<salt>$<digest>`` with
unpadded urlsafe base64 for salt and digest.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import os
from typing import Optional, Tuple

from apphub.exceptions import ValidationError

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 260_000
SALT_BYTES = 16


def _encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def _split(stored_hash: str) -> Optional[Tuple[int, bytes, bytes]]:
    parts = (stored_hash or "").split("$")
    if len(parts) != 4 or parts[0] != ALGORITHM:
        return None
    try:
        return int(parts[1]), _decode(parts[2]), _decode(parts[3])
    except ValueError:
        return None


def validate_password(password: str, *, min_length: int) -> None:
    if not password or len(password) < min_length:
        raise ValidationError(
            f"Password must be at least {min_length} characters", field="password"
        )


def hash_password(password: str, *, iterations: int = DEFAULT_ITERATIONS) -> str:
    if not password:
        raise ValidationError("Password must not be empty", field="password")
    salt = os.urandom(SALT_BYTES)
    digest = _derive(password, salt, iterations)
    return f"{ALGORITHM}${iterations}${_encode(salt)}${_encode(digest)}"


def verify_password(password: str, stored_hash: str) -> bool:
    parsed = _split(stored_hash)
    if parsed is None:
        return False
    iterations, salt, expected = parsed
    return hmac.compare_digest(_derive(password, salt, iterations), expected)


def needs_rehash(stored_hash: str, *, iterations: int = DEFAULT_ITERATIONS) -> bool:
    """True when the hash was made with fewer rounds than we use today."""
    parsed = _split(stored_hash)
    return parsed is None or parsed[0] < iterations
