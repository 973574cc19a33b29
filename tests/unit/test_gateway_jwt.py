"""Unit tests for JWT handler."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from config.settings import settings
from src.sf_common.enums import TokenRole
from src.sf_common.errors import InvalidCredentialsError, InvalidRefreshTokenError
from src.sf_gateway.auth.jwt_handler import (
    ADMIN_SUBJECT,
    create_access_token,
    create_refresh_token,
    decode_token,
)


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("user-123")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"
    assert payload["role"] == "user"


def test_admin_token_role() -> None:
    token = create_access_token(ADMIN_SUBJECT, TokenRole.ADMIN)
    payload = decode_token(token, expected_type="access")
    assert payload["role"] == "admin"
    assert payload["sub"] == "admin"


def test_decode_valid_refresh_token() -> None:
    token = create_refresh_token("user-abc")
    payload = decode_token(token, expected_type="refresh")
    assert payload["sub"] == "user-abc"


def test_refresh_token_rejected_as_access() -> None:
    token = create_refresh_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")


def test_access_token_rejected_as_refresh() -> None:
    token = create_access_token("user-abc")
    with pytest.raises(InvalidRefreshTokenError):
        decode_token(token, expected_type="refresh")


def test_token_signed_with_other_secret_rejected() -> None:
    token = jwt.encode(
        {"sub": "x", "type": "access", "role": "user"},
        "not-the-server-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")


def test_unknown_role_rejected() -> None:
    token = jwt.encode(
        {"sub": "x", "type": "access", "role": "superuser"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")


def test_expired_token_rejected() -> None:
    with patch("src.sf_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
        token = create_access_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")
