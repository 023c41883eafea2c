"""Out-of-band summary refresh after an event is recorded.

With the ``arq`` backend the refresh is a queued job keyed per card, so a
burst of events for one card collapses into a single pending job. The
``inline`` backend recomputes in-process (local development and tests).
Failures here are logged and counted, never raised to the request.
"""

import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from libs.common.arq_config import get_arq_pool
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.metrics import ANALYTICS_REFRESH
from services.analytics_service.services.aggregator import refresh_summary
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)
settings = get_settings()

REFRESH_JOB = "refresh_card_summary"
# Events arriving within this window share one queued refresh.
COALESCE_DELAY = timedelta(seconds=5)


def refresh_job_id(card_id: uuid.UUID) -> str:
    return f"summary:{card_id}"


async def dispatch_summary_refresh(
    card_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession],
    clock: Optional[Callable[[], datetime]] = None,
) -> None:
    if settings.ANALYTICS_REFRESH_BACKEND == "inline":
        await run_refresh_now(card_id, session_factory, clock)
        return

    try:
        pool = await get_arq_pool()
        job = await pool.enqueue_job(
            REFRESH_JOB,
            str(card_id),
            _job_id=refresh_job_id(card_id),
            _defer_by=COALESCE_DELAY,
        )
    except Exception:
        ANALYTICS_REFRESH.labels(outcome="enqueue_failed").inc()
        logger.warning(
            "Could not enqueue analytics refresh for card %s",
            card_id,
            exc_info=True,
            extra={"extra_fields": {"card_id": str(card_id)}},
        )
        return

    # None means a refresh for this card is already queued
    ANALYTICS_REFRESH.labels(outcome="enqueued" if job else "coalesced").inc()


async def run_refresh_now(
    card_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession],
    clock: Optional[Callable[[], datetime]] = None,
) -> None:
    try:
        async with session_factory() as db:
            await refresh_summary(db, card_id, clock() if clock else None)
    except Exception:
        ANALYTICS_REFRESH.labels(outcome="failed").inc()
        logger.exception(
            "Analytics refresh failed for card %s",
            card_id,
            extra={"extra_fields": {"card_id": str(card_id)}},
        )
        return
    ANALYTICS_REFRESH.labels(outcome="completed").inc()
