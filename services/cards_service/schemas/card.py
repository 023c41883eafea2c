"""Pydantic schemas for the cards service."""

import uuid
from datetime import datetime
from typing import Any, Optional

from libs.common.schemas import CamelModel
from pydantic import AnyHttpUrl, EmailStr, Field, field_validator

# ============================================================================
# CARD DOCUMENT
# ============================================================================


class Address(CamelModel):
    city: Optional[str] = None
    country: Optional[str] = None


class PersonalInfo(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    website: Optional[AnyHttpUrl] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Address] = None

    @field_validator("website", "email", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


class SocialLink(CamelModel):
    platform: str
    url: AnyHttpUrl
    icon: Optional[str] = None


class CardLink(CamelModel):
    id: str
    title: str
    url: AnyHttpUrl
    description: Optional[str] = None
    icon: Optional[str] = None
    visible: bool = True
    order: int


class CardStats(CamelModel):
    projects: Optional[str] = None
    awards: Optional[str] = None
    experience: Optional[str] = None


class CardMeta(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None


class CardData(CamelModel):
    personal: Optional[PersonalInfo] = None
    social: Optional[list[SocialLink]] = None
    links: Optional[list[CardLink]] = None
    stats: Optional[CardStats] = None
    meta: Optional[CardMeta] = None

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict as stored in ``cards.data``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# REQUESTS
# ============================================================================


class CardCreate(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    data: Optional[CardData] = None
    theme: Optional[dict[str, Any]] = None


class CardUpdate(CardCreate):
    pass


class PublishRequest(CamelModel):
    slug: str
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_image: Optional[str] = None


# ============================================================================
# RESPONSES
# ============================================================================


class CardResponse(CamelModel):
    id: uuid.UUID
    user_id: str
    title: str
    slug: str
    data: dict[str, Any]
    theme: dict[str, Any]
    is_published: bool
    public_url: Optional[str] = None
    qr_code_url: Optional[str] = None
    analytics: Optional[dict[str, Any]] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PublicCardResponse(CamelModel):
    id: uuid.UUID
    title: str
    slug: str
    data: dict[str, Any]
    theme: dict[str, Any]
    public_url: Optional[str] = None
    qr_code_url: Optional[str] = None
    published_at: Optional[datetime] = None


class PublishResponse(CamelModel):
    success: bool = True
    message: str = "Card published successfully"
    card: CardResponse


class SlugCheckResponse(CamelModel):
    available: bool
    message: str
