from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import ForbiddenError, UnauthorizedError

settings = get_settings()
security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> AuthUser:
    """Verify an HS256 access token and return its user. Raises UnauthorizedError."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
        return AuthUser(**payload)
    except (JWTError, ValidationError):
        raise UnauthorizedError()


async def get_current_user(
    request: Request,
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AuthUser:
    """
    Authenticate from the Bearer header, falling back to the session cookie
    the web frontend sets.
    """
    raw = token.credentials if token else request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not raw:
        raise UnauthorizedError("Authentication required")

    user = decode_access_token(raw)
    request.state.user = user
    return user


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """Ensure the caller carries the admin role claim."""
    if current_user.role != settings.ADMIN_ROLE:
        raise ForbiddenError("Admin privileges required")
    return current_user
