"""Rate limiting configuration for tapcard services.

Uses slowapi; storage comes from RATE_LIMIT_STORAGE_URI so instances can share
counters through Redis in production.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from libs.common.config import get_settings


def get_client_ip(request: Request) -> str:
    """
    Get client IP from request, handling proxies.

    Checks X-Forwarded-For first (original client is the first hop), then
    X-Real-IP, then the direct connection address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return get_remote_address(request) or "unknown"


def _get_user_or_ip(request: Request) -> str:
    """Rate limit by user ID if authenticated, otherwise by IP."""
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.user_id}"
    return f"ip:{get_client_ip(request)}"


@lru_cache
def get_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=_get_user_or_ip,
        default_limits=["100/minute"],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=settings.RATE_LIMIT_ENABLED,
    )


limiter = get_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """JSON 429 in the shared error body shape."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "message": f"Rate limit exceeded: {exc.detail}",
            "details": None,
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


def tracking_limit(func: Callable) -> Callable:
    """Public analytics ingestion (120/minute per client)."""
    return limiter.limit("120/minute")(func)


def payment_limit(func: Callable) -> Callable:
    """Payment initiation (10/minute per user)."""
    return limiter.limit("10/minute")(func)
