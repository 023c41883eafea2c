"""Card lifecycle: create with a unique slug, edit, publish, delete."""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
    ValidationFailedError,
)
from libs.common.logging import get_logger
from libs.common.storage import StorageService
from services.analytics_service.models import CardEvent
from services.cards_service.models import Card
from services.cards_service.qr import generate_and_upload_qr
from services.cards_service.schemas import CardCreate, CardUpdate, PublishRequest
from services.cards_service.slugs import next_free_slug, slug_taken, validate_slug
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()

SLUG_INSERT_ATTEMPTS = 5
DEFAULT_TITLE = "Untitled Card"
DEFAULT_META_TITLE = "Digital Business Card"
DEFAULT_META_DESCRIPTION = "View my digital business card"


def public_card_url(slug: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/card/{slug}"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_owned_card(
    db: AsyncSession, card_id: uuid.UUID, user: AuthUser, *, for_update: bool = False
) -> Card:
    query = select(Card).where(Card.id == card_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    card = result.scalar_one_or_none()
    if card is None:
        raise NotFoundError("Card not found")
    if card.user_id != user.user_id:
        raise ForbiddenError("You do not own this card")
    return card


async def list_cards(db: AsyncSession, user: AuthUser) -> list[Card]:
    result = await db.execute(
        select(Card)
        .where(Card.user_id == user.user_id)
        .order_by(Card.updated_at.desc())
    )
    return list(result.scalars().all())


async def get_public_card(db: AsyncSession, slug: str) -> Card:
    result = await db.execute(
        select(Card).where(Card.slug == slug, Card.is_published.is_(True))
    )
    card = result.scalar_one_or_none()
    if card is None:
        raise NotFoundError("Card not found")
    return card


async def check_slug(db: AsyncSession, slug: str) -> tuple[bool, str]:
    """Availability check used by the publish form before submitting."""
    error = validate_slug(slug)
    if error:
        return False, error
    if await slug_taken(db, slug):
        return False, "This slug is already taken"
    return True, "Slug is available"


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_card(db: AsyncSession, user: AuthUser, payload: CardCreate) -> Card:
    """Insert a draft card under the first free slug derived from its title.

    Two creates with the same title can pick the same candidate; the loser hits
    the unique index, rolls back and picks again.
    """
    title = payload.title or DEFAULT_TITLE
    for attempt in range(1, SLUG_INSERT_ATTEMPTS + 1):
        slug = await next_free_slug(db, payload.title)
        card = Card(
            user_id=user.user_id,
            title=title,
            slug=slug,
            data=payload.data.to_document() if payload.data else {},
            theme=payload.theme or {},
            is_published=False,
        )
        db.add(card)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info(
                "Slug collision on create, retrying",
                extra={"extra_fields": {"slug": slug, "attempt": attempt}},
            )
            continue
        await db.refresh(card)
        logger.info("Created card %s (%s) for %s", card.id, card.slug, user.user_id)
        return card

    raise ConflictError("Could not allocate a unique slug, please retry")


async def update_card(
    db: AsyncSession, card_id: uuid.UUID, user: AuthUser, payload: CardUpdate
) -> Card:
    card = await get_owned_card(db, card_id, user)
    fields = payload.model_fields_set

    if "title" in fields and payload.title is not None:
        card.title = payload.title
    if "data" in fields and payload.data is not None:
        document = payload.data.to_document()
        # meta is owned by publish; keep it unless the client sends one
        if "meta" not in document and "meta" in (card.data or {}):
            document["meta"] = card.data["meta"]
        card.data = document
    if "theme" in fields and payload.theme is not None:
        card.theme = payload.theme

    await db.commit()
    await db.refresh(card)
    return card


async def delete_card(db: AsyncSession, card_id: uuid.UUID, user: AuthUser) -> None:
    """Delete a card and its analytics events together."""
    card = await get_owned_card(db, card_id, user)
    await db.execute(delete(CardEvent).where(CardEvent.card_id == card.id))
    await db.delete(card)
    await db.commit()
    logger.info("Deleted card %s for %s", card_id, user.user_id)


async def publish_card(
    db: AsyncSession,
    card_id: uuid.UUID,
    user: AuthUser,
    payload: PublishRequest,
    storage: StorageService,
) -> Card:
    card = await get_owned_card(db, card_id, user)

    error = validate_slug(payload.slug)
    if error:
        raise ValidationFailedError(error, details=[{"field": "slug", "message": error}])
    if payload.slug != card.slug and await slug_taken(db, payload.slug, card.id):
        raise ConflictError("This slug is already in use. Please choose another.")

    public_url = public_card_url(payload.slug)
    qr_code_url = await _try_generate_qr(storage, card, public_url)

    data = dict(card.data or {})
    personal = data.get("personal") or {}
    data["meta"] = {
        "title": payload.meta_title or card.title or DEFAULT_META_TITLE,
        "description": payload.meta_description or DEFAULT_META_DESCRIPTION,
        "image": payload.meta_image or personal.get("profileImage"),
    }

    card.slug = payload.slug
    card.public_url = public_url
    card.qr_code_url = qr_code_url
    card.data = data
    card.is_published = True
    card.published_at = card.published_at or utc_now()

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("This slug is already in use. Please choose another.")

    await db.refresh(card)
    logger.info(
        "Published card %s at %s",
        card.id,
        public_url,
        extra={"extra_fields": {"qr": bool(card.qr_code_url)}},
    )
    return card


async def unpublish_card(db: AsyncSession, card_id: uuid.UUID, user: AuthUser) -> Card:
    card = await get_owned_card(db, card_id, user)
    card.is_published = False
    await db.commit()
    await db.refresh(card)
    return card


async def regenerate_qr(
    db: AsyncSession, card_id: uuid.UUID, user: AuthUser, storage: StorageService
) -> Card:
    """Retry QR generation for a published card (e.g. after a failed publish)."""
    card = await get_owned_card(db, card_id, user)
    if not card.is_published or not card.public_url:
        raise PreconditionFailedError("Card must be published before generating a QR code")

    try:
        card.qr_code_url = await generate_and_upload_qr(storage, card.id, card.public_url)
    except Exception as exc:
        logger.exception("QR generation failed for card %s", card.id)
        raise AppError("Failed to generate QR code") from exc
    await db.commit()
    await db.refresh(card)
    return card


async def _try_generate_qr(
    storage: StorageService, card: Card, public_url: str
) -> Optional[str]:
    """Publishing never fails because of the QR image; keep the old URL instead."""
    try:
        return await generate_and_upload_qr(storage, card.id, public_url)
    except Exception:
        logger.warning(
            "QR generation failed for card %s, keeping previous image",
            card.id,
            exc_info=True,
        )
        return card.qr_code_url
