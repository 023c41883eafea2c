"""Unit tests for access token decoding."""

import time

import pytest
from jose import jwt
from libs.auth.dependencies import decode_access_token
from libs.common.config import get_settings
from libs.common.errors import UnauthorizedError

settings = get_settings()


def _token(claims: dict, secret: str = None) -> str:
    return jwt.encode(claims, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.mark.unit
def test_decode_valid_token():
    user = decode_access_token(
        _token({"sub": "user-1", "email": "a@example.com", "exp": int(time.time()) + 60})
    )

    assert user.user_id == "user-1"
    assert user.email == "a@example.com"
    assert user.role == "authenticated"


@pytest.mark.unit
def test_decode_keeps_role_claim():
    user = decode_access_token(_token({"sub": "admin-1", "role": settings.ADMIN_ROLE}))

    assert user.role == settings.ADMIN_ROLE


@pytest.mark.unit
@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        _token({"sub": "user-1"}, secret="some-other-secret"),
        _token({"sub": "user-1", "exp": int(time.time()) - 60}),
        _token({"email": "no-subject@example.com"}),
    ],
)
def test_decode_rejects_bad_tokens(token):
    with pytest.raises(UnauthorizedError) as exc_info:
        decode_access_token(token)

    assert exc_info.value.status_code == 401
