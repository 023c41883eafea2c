"""Routers package."""

from services.payments_service.routers.payfast import router as payfast_router
from services.payments_service.routers.payments import router as payments_router

__all__ = ["payfast_router", "payments_router"]
