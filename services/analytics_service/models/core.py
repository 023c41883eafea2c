import uuid
from datetime import datetime
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import GUID, Base, JSONType
from services.analytics_service.models.enums import EventType, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

# Registers the cards table for the foreign key below
from services.cards_service.models import Card  # noqa: F401


class CardEvent(Base):
    """Immutable analytics fact. Rows are only ever inserted."""

    __tablename__ = "card_events"
    __table_args__ = (Index("ix_card_events_card_time", "card_id", "occurred_at"),)

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True, default=uuid.uuid4)
    card_id: Mapped[uuid.UUID] = mapped_column(
        GUID, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False
    )
    event_type: Mapped[EventType] = mapped_column(
        SAEnum(
            EventType,
            name="card_event_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    # "metadata" is reserved on declarative classes
    event_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, default=dict, nullable=False
    )
    # sha256 of the client address; the raw address is never stored
    ip_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<CardEvent {self.event_type.value} card={self.card_id}>"
