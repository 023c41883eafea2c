"""Unauthenticated card endpoints: the public card page data and its QR image."""

from io import BytesIO

from fastapi import APIRouter, Depends, Response
from fastapi.responses import StreamingResponse
from libs.db.session import get_async_db
from services.cards_service.qr import render_qr_png
from services.cards_service.schemas import PublicCardResponse
from services.cards_service.services import card_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["public"])

PUBLIC_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"


@router.get("/public/cards/{slug}", response_model=PublicCardResponse)
async def get_public_card(
    slug: str,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
):
    card = await card_ops.get_public_card(db, slug)
    response.headers["Cache-Control"] = PUBLIC_CACHE_CONTROL
    return card


@router.get("/q/{slug}.png")
async def get_card_qr(slug: str, db: AsyncSession = Depends(get_async_db)):
    card = await card_ops.get_public_card(db, slug)
    png = render_qr_png(card.public_url or card_ops.public_card_url(card.slug))
    return StreamingResponse(
        BytesIO(png),
        media_type="image/png",
        headers={"Cache-Control": PUBLIC_CACHE_CONTROL},
    )
