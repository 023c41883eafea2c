from services.cards_service.schemas.card import (
    CardCreate,
    CardData,
    CardResponse,
    CardUpdate,
    PublicCardResponse,
    PublishRequest,
    PublishResponse,
    SlugCheckResponse,
)

__all__ = [
    "CardCreate",
    "CardData",
    "CardResponse",
    "CardUpdate",
    "PublicCardResponse",
    "PublishRequest",
    "PublishResponse",
    "SlugCheckResponse",
]
