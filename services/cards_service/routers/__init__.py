"""Routers package."""

from services.cards_service.routers.cards import router as cards_router
from services.cards_service.routers.public import router as public_router

__all__ = ["cards_router", "public_router"]
