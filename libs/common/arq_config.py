"""ARQ (Async Redis Queue) configuration utilities.

Provides helpers for parsing Redis connection settings from the
application config into ARQ-compatible RedisSettings, and a shared
pool for enqueueing jobs from request handlers.
"""

import asyncio
from typing import Optional
from urllib.parse import urlparse

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings
from libs.common.config import get_settings

_pool: Optional[ArqRedis] = None
_pool_lock = asyncio.Lock()


def get_redis_settings() -> RedisSettings:
    """Parse REDIS_URL from application settings into ARQ RedisSettings."""
    settings = get_settings()
    parsed = urlparse(settings.REDIS_URL)

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        password=parsed.password,
        conn_timeout=2,
        conn_retries=1,
    )


async def get_arq_pool() -> ArqRedis:
    """Return the process-wide ARQ pool, creating it on first use."""
    global _pool
    if _pool is None:
        async with _pool_lock:
            if _pool is None:
                _pool = await create_pool(get_redis_settings())
    return _pool


async def close_arq_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
