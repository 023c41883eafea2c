"""Background analytics tasks run by the ARQ worker."""

from __future__ import annotations

import uuid
from datetime import datetime

from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.analytics_service.services.aggregator import (
    refresh_summary,
    stale_published_card_ids,
)

logger = get_logger(__name__)


async def refresh_one(card_id: uuid.UUID) -> None:
    async with AsyncSessionLocal() as db:
        summary = await refresh_summary(db, card_id)
    logger.info(
        "Refreshed analytics for card %s (total=%d)",
        card_id,
        summary.total,
    )


async def refresh_stale_summaries(now: datetime | None = None) -> int:
    """Recompute every published card whose cached summary has expired."""
    async with AsyncSessionLocal() as db:
        card_ids = await stale_published_card_ids(db, now)

    refreshed = 0
    for card_id in card_ids:
        try:
            async with AsyncSessionLocal() as db:
                await refresh_summary(db, card_id, now)
            refreshed += 1
        except Exception:
            logger.exception("Stale summary refresh failed for card %s", card_id)

    logger.info("Refreshed %d of %d stale analytics summaries", refreshed, len(card_ids))
    return refreshed
