from datetime import timedelta

import pytest

from mes.core.config import settings
from mes.core.security import (
    create_access_token,
    create_user_token,
    hash_password,
    refresh_access_token,
    verify_access_token,
    verify_password,
)


def test_hash_password():
    password = "test123"
    hashed = hash_password(password)
    assert hashed != password
    assert verify_password(password, hashed)


def test_verify_wrong_password():
    password = "test123"
    hashed = hash_password(password)
    assert not verify_password("wrong", hashed)


def test_user_token_claims():
    token = create_user_token(7, "alice", "admin")
    payload = verify_access_token(token)
    assert payload["sub"] == "7"
    assert payload["username"] == "alice"
    assert payload["role"] == "admin"
    assert payload["iss"] == settings.TOKEN_ISSUER
    assert payload["exp"] > payload["iat"]


def test_tampered_token_rejected():
    token = create_user_token(1, "alice", "user")
    with pytest.raises(ValueError):
        verify_access_token(token + "x")


def test_expired_token_rejected():
    token = create_access_token({"sub": "1"}, expires_delta=timedelta(minutes=-1))
    with pytest.raises(ValueError):
        verify_access_token(token)


def test_refresh_within_window():
    token = create_access_token(
        {"sub": "3", "username": "bob", "role": "user"}, expires_delta=timedelta(minutes=5)
    )
    refreshed = refresh_access_token(token)
    payload = verify_access_token(refreshed)
    assert payload["sub"] == "3"
    assert payload["username"] == "bob"


def test_refresh_too_early_rejected():
    token = create_access_token(
        {"sub": "3", "username": "bob", "role": "user"},
        expires_delta=timedelta(minutes=settings.REFRESH_TOKEN_WINDOW_MINUTES + 60),
    )
    with pytest.raises(ValueError):
        refresh_access_token(token)
