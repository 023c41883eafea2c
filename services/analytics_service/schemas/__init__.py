from services.analytics_service.schemas.analytics import (
    AnalyticsSummary,
    EventCreate,
    EventMetadata,
    EventTrackedResponse,
    SummaryResponse,
)

__all__ = [
    "AnalyticsSummary",
    "EventCreate",
    "EventMetadata",
    "EventTrackedResponse",
    "SummaryResponse",
]
