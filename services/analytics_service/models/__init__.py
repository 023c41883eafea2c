"""Analytics Service models package."""

from services.analytics_service.models.core import CardEvent
from services.analytics_service.models.enums import EventType

__all__ = ["CardEvent", "EventType"]
