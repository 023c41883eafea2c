"""Slug generation and validation for public card URLs."""

import re
import time
import uuid
from typing import Optional

from services.cards_service.models import Card
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50
# Leaves room for a "-NNN" collision suffix within SLUG_MAX_LENGTH.
SLUG_BASE_MAX_LENGTH = 40

_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
_STRIP_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s_-]+", re.ASCII)


def generate_slug(text: str) -> str:
    """Lowercase, drop punctuation, and hyphenate whitespace/underscores.

    >>> generate_slug("  Jane Doe's Card! ")
    'jane-does-card'
    """
    slug = _STRIP_CHARS.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-")


def fallback_slug() -> str:
    return f"card-{int(time.time() * 1000)}"


def validate_slug(slug: str) -> Optional[str]:
    """Return an error message for an unusable slug, or None if it is valid."""
    if not _SLUG_PATTERN.match(slug):
        return "Slug can only contain lowercase letters, numbers, and hyphens"
    if len(slug) < SLUG_MIN_LENGTH:
        return f"Slug must be at least {SLUG_MIN_LENGTH} characters"
    if len(slug) > SLUG_MAX_LENGTH:
        return f"Slug must be less than {SLUG_MAX_LENGTH} characters"
    return None


async def slug_taken(
    db: AsyncSession, slug: str, exclude_card_id: Optional[uuid.UUID] = None
) -> bool:
    query = select(Card.id).where(Card.slug == slug)
    if exclude_card_id is not None:
        query = query.where(Card.id != exclude_card_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def next_free_slug(db: AsyncSession, title: Optional[str]) -> str:
    """First unused slug of ``base``, ``base-1``, ``base-2``, ... for a title."""
    base = generate_slug(title or "")[:SLUG_BASE_MAX_LENGTH].strip("-") or fallback_slug()

    candidate = base
    counter = 0
    while await slug_taken(db, candidate):
        counter += 1
        candidate = f"{base}-{counter}"
    return candidate
