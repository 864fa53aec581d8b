import pytest

from apphub.exceptions import ValidationError
from apphub.security.auth.jwt import (
    JWTError,
    decode_hs256,
    encode_hs256,
    issue_access_token,
    read_access_token,
)
from apphub.security.auth.passwords import (
    hash_password,
    needs_rehash,
    validate_password,
    verify_password,
)


def test_access_token_carries_version_and_role():
    token = issue_access_token(
        user_id=7, secret="s", token_version=3, role="admin", ttl_seconds=60, now=1000
    )
    payload = decode_hs256(token, secret="s", leeway_seconds=10**10)
    assert payload["exp"] - payload["iat"] == 60

    claims = read_access_token(token, secret="s", leeway_seconds=10**10)
    assert claims.user_id == 7
    assert claims.token_version == 3
    assert claims.role == "admin"
    assert claims.expires_at == 1060


def test_token_rejects_wrong_secret():
    token = issue_access_token(user_id=1, secret="a")
    with pytest.raises(JWTError, match="Invalid signature"):
        read_access_token(token, secret="b")


def test_token_rejects_expired():
    token = issue_access_token(user_id=1, secret="s", ttl_seconds=-10)
    with pytest.raises(JWTError, match="expired"):
        read_access_token(token, secret="s")
    assert read_access_token(token, secret="s", leeway_seconds=60).user_id == 1


def test_token_rejects_garbage():
    with pytest.raises(JWTError, match="format"):
        decode_hs256("not-a-token", secret="s")
    with pytest.raises(JWTError):
        decode_hs256("a.b.c", secret="s")


def test_token_requires_numeric_subject():
    token = encode_hs256({"sub": "someone"}, secret="s")
    with pytest.raises(JWTError, match="Invalid sub claim"):
        read_access_token(token, secret="s")


def test_password_hash_verifies():
    stored = hash_password("hunter22", iterations=1000)
    assert stored.startswith("pbkdf2_sha256$1000$")
    assert verify_password("hunter22", stored)
    assert not verify_password("hunter23", stored)
    assert not verify_password("hunter22", "garbage")


def test_password_min_length():
    validate_password("123456", min_length=6)
    with pytest.raises(ValidationError, match="at least 6 characters"):
        validate_password("12345", min_length=6)


def test_needs_rehash_on_weaker_hash():
    assert needs_rehash(hash_password("hunter22", iterations=1000))
    assert not needs_rehash(hash_password("hunter22", iterations=1000), iterations=1000)
    assert needs_rehash("md5$abc")
