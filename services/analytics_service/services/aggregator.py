"""Event recording and the cached per-card analytics summary.

The summary is recomputed wholesale from ``card_events`` and written onto
``cards.analytics``. Concurrent refreshes are harmless: each writes a complete
summary and the last writer wins.

Every function takes an optional ``now`` so window boundaries and cache
expiry can be pinned in tests.
"""

import hashlib
import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, parse_iso, utc_now
from libs.common.errors import ForbiddenError, NotFoundError, PreconditionFailedError
from libs.common.logging import get_logger
from libs.common.metrics import EVENTS_RECORDED
from services.analytics_service.models import CardEvent, EventType
from services.analytics_service.schemas import AnalyticsSummary
from services.cards_service.models import Card
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()

WINDOW_24H = timedelta(hours=24)
WINDOW_7D = timedelta(days=7)
WINDOW_30D = timedelta(days=30)


def hash_address(address: str) -> str:
    """One-way hash of a client address (salted when IP_HASH_SALT is set)."""
    return hashlib.sha256(f"{settings.IP_HASH_SALT}{address}".encode("utf-8")).hexdigest()


def cache_ttl() -> timedelta:
    return timedelta(seconds=settings.ANALYTICS_CACHE_TTL_SECONDS)


def is_fresh(cached: Optional[dict[str, Any]], now: datetime) -> bool:
    """True when a cached summary was computed less than the TTL ago."""
    if not cached:
        return False
    last_updated = parse_iso(cached.get("lastUpdated"))
    if last_updated is None:
        return False
    return ensure_utc(now) - last_updated < cache_ttl()


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


async def record_event(
    db: AsyncSession,
    *,
    card_id: uuid.UUID,
    event_type: EventType,
    metadata: Optional[dict[str, Any]],
    source_address: str,
    now: Optional[datetime] = None,
) -> CardEvent:
    """Append one event for a published card.

    The caller schedules the summary refresh; this function never waits on it.
    """
    result = await db.execute(select(Card.id, Card.is_published).where(Card.id == card_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Card not found")
    if not row.is_published:
        raise PreconditionFailedError("Card is not published")

    event = CardEvent(
        card_id=card_id,
        event_type=event_type,
        event_metadata=metadata or {},
        ip_hash=hash_address(source_address),
        occurred_at=now or utc_now(),
    )
    db.add(event)
    await db.commit()

    EVENTS_RECORDED.labels(event_type=event_type.value).inc()
    logger.debug(
        "Recorded %s event for card %s",
        event_type.value,
        card_id,
        extra={"extra_fields": {"card_id": str(card_id), "event_type": event_type.value}},
    )
    return event


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


async def compute_summary(
    db: AsyncSession, card_id: uuid.UUID, now: Optional[datetime] = None
) -> AnalyticsSummary:
    """Count events for one card: all-time, 24h, 7d, 30d, and per type.

    One grouped statement, so every count comes from the same snapshot and
    ``total`` always equals the sum of ``byType``.
    """
    now = ensure_utc(now or utc_now())
    ts = CardEvent.occurred_at
    query = (
        select(
            CardEvent.event_type,
            func.count().label("total"),
            func.count().filter(ts >= now - WINDOW_24H).label("last_24h"),
            func.count().filter(ts >= now - WINDOW_7D).label("last_7d"),
            func.count().filter(ts >= now - WINDOW_30D).label("last_30d"),
        )
        .where(CardEvent.card_id == card_id)
        .group_by(CardEvent.event_type)
    )
    rows = (await db.execute(query)).all()

    by_type = {row.event_type.value: row.total for row in rows}
    return AnalyticsSummary(
        total=sum(row.total for row in rows),
        last_24h=sum(row.last_24h for row in rows),
        last_7d=sum(row.last_7d for row in rows),
        last_30d=sum(row.last_30d for row in rows),
        by_type=by_type,
        last_updated=now,
    )


async def refresh_summary(
    db: AsyncSession, card_id: uuid.UUID, now: Optional[datetime] = None
) -> AnalyticsSummary:
    """Recompute and overwrite the cached summary on the card."""
    summary = await compute_summary(db, card_id, now)
    await db.execute(
        update(Card)
        .where(Card.id == card_id)
        # analytics refreshes are not edits; keep updated_at as is
        .values(analytics=summary.to_document(), updated_at=Card.updated_at)
    )
    await db.commit()
    return summary


async def get_summary(
    db: AsyncSession,
    card_id: uuid.UUID,
    user: AuthUser,
    now: Optional[datetime] = None,
) -> tuple[AnalyticsSummary, bool]:
    """Return ``(summary, cached)`` for an owned card."""
    now = ensure_utc(now or utc_now())
    result = await db.execute(select(Card.user_id, Card.analytics).where(Card.id == card_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Card not found")
    if row.user_id != user.user_id:
        raise ForbiddenError("You do not own this card")

    if is_fresh(row.analytics, now):
        return AnalyticsSummary.model_validate(row.analytics), True

    summary = await refresh_summary(db, card_id, now)
    return summary, False


async def stale_published_card_ids(
    db: AsyncSession, now: Optional[datetime] = None
) -> list[uuid.UUID]:
    """Published cards whose cached summary is missing or past the TTL."""
    now = ensure_utc(now or utc_now())
    result = await db.execute(
        select(Card.id, Card.analytics).where(Card.is_published.is_(True))
    )
    return [row.id for row in result.all() if not is_fresh(row.analytics, now)]
