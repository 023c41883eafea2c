"""Analytics ingestion (public) and summary (owner) endpoints."""

import uuid
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.rate_limit import get_client_ip, tracking_limit
from libs.db.session import get_async_db, get_session_factory
from services.analytics_service.schemas import (
    EventCreate,
    EventMetadata,
    EventTrackedResponse,
    SummaryResponse,
)
from services.analytics_service.services import aggregator
from services.analytics_service.services.refresh import dispatch_summary_refresh
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_clock() -> Callable[[], datetime]:
    """Wall clock for window and cache calculations; overridden in tests."""
    return utc_now


def _event_metadata(payload: EventCreate, request: Request) -> dict:
    metadata = payload.metadata or EventMetadata()
    if metadata.user_agent is None:
        metadata.user_agent = request.headers.get("user-agent")
    if metadata.referrer is None:
        metadata.referrer = request.headers.get("referer")
    return metadata.model_dump(by_alias=True, exclude_none=True)


@router.post(
    "/events",
    response_model=EventTrackedResponse,
    status_code=status.HTTP_201_CREATED,
)
@tracking_limit
async def track_event(
    request: Request,
    payload: EventCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Record a view, link click, QR scan or share on a published card.

    The summary refresh runs after the response is sent.
    """
    await aggregator.record_event(
        db,
        card_id=payload.card_id,
        event_type=payload.event_type,
        metadata=_event_metadata(payload, request),
        source_address=get_client_ip(request),
        now=clock(),
    )
    background_tasks.add_task(
        dispatch_summary_refresh, payload.card_id, session_factory, clock
    )
    return EventTrackedResponse()


@router.get("/cards/{card_id}/summary", response_model=SummaryResponse)
async def get_card_summary(
    card_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    summary, cached = await aggregator.get_summary(db, card_id, current_user, now=clock())
    return SummaryResponse(analytics=summary, cached=cached)
