"""Cards Service models package."""

from services.cards_service.models.core import Card

__all__ = ["Card"]
