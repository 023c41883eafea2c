"""Routers package."""

from services.analytics_service.routers.analytics import router as analytics_router

__all__ = ["analytics_router"]
