"""Pydantic schemas for analytics ingestion and summaries."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import to_iso
from libs.common.schemas import CamelModel
from pydantic import ConfigDict, Field, field_serializer
from services.analytics_service.models import EventType


class EventMetadata(CamelModel):
    """Open key-value bag; the named keys are the ones the frontend sends."""

    model_config = ConfigDict(extra="allow")

    source: Optional[str] = None
    user_agent: Optional[str] = None
    link_id: Optional[str] = None
    referrer: Optional[str] = None


class EventCreate(CamelModel):
    card_id: uuid.UUID
    event_type: EventType
    metadata: Optional[EventMetadata] = None


class EventTrackedResponse(CamelModel):
    success: bool = True
    message: str = "Event tracked successfully"


class AnalyticsSummary(CamelModel):
    """Denormalized counts cached on ``cards.analytics``."""

    total: int = 0
    last_24h: int = Field(0, alias="last24h")
    last_7d: int = Field(0, alias="last7d")
    last_30d: int = Field(0, alias="last30d")
    by_type: dict[str, int] = Field(default_factory=dict)
    last_updated: datetime

    @field_serializer("last_updated")
    def serialize_last_updated(self, value: datetime) -> str:
        return to_iso(value)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SummaryResponse(CamelModel):
    success: bool = True
    analytics: AnalyticsSummary
    cached: bool
