"""Owner-facing card endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import ValidationFailedError
from libs.common.storage import StorageService, get_storage_service
from libs.db.session import get_async_db
from services.cards_service.schemas import (
    CardCreate,
    CardResponse,
    CardUpdate,
    PublishRequest,
    PublishResponse,
    SlugCheckResponse,
)
from services.cards_service.services import card_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/cards", tags=["cards"])


@router.get("", response_model=list[CardResponse])
async def list_my_cards(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the caller's cards, most recently edited first."""
    return await card_ops.list_cards(db, current_user)


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    payload: CardCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await card_ops.create_card(db, current_user, payload)


@router.get("/slug-check", response_model=SlugCheckResponse)
async def slug_check(
    slug: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_async_db),
):
    """Public availability check for the publish form."""
    if not slug:
        raise ValidationFailedError("Slug parameter is required")
    available, message = await card_ops.check_slug(db, slug)
    return SlugCheckResponse(available=available, message=message)


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await card_ops.get_owned_card(db, card_id, current_user)


@router.patch("/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: uuid.UUID,
    payload: CardUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await card_ops.update_card(db, card_id, current_user, payload)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    card_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    await card_ops.delete_card(db, card_id, current_user)


@router.post("/{card_id}/publish", response_model=PublishResponse)
async def publish_card(
    card_id: uuid.UUID,
    payload: PublishRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Publish under ``slug``; a QR upload failure does not block publishing."""
    card = await card_ops.publish_card(db, card_id, current_user, payload, storage)
    return PublishResponse(card=CardResponse.model_validate(card))


@router.post("/{card_id}/unpublish", response_model=CardResponse)
async def unpublish_card(
    card_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await card_ops.unpublish_card(db, card_id, current_user)


@router.post("/{card_id}/qr", response_model=CardResponse)
async def regenerate_qr(
    card_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    storage: StorageService = Depends(get_storage_service),
):
    return await card_ops.regenerate_qr(db, card_id, current_user, storage)
