import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import GUID, Base, JSONType
from services.payments_service.models.enums import (
    PaymentGateway,
    PaymentStatus,
    enum_values,
)
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

# Registers the store_orders table for the foreign key below
from services.store_service.models import Order  # noqa: F401


class Payment(Base):
    """One payment attempt against one order."""

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    order_id: Mapped[uuid.UUID] = mapped_column(
        GUID, ForeignKey("store_orders.id", ondelete="CASCADE"), index=True, nullable=False
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)

    gateway: Mapped[PaymentGateway] = mapped_column(
        SAEnum(
            PaymentGateway,
            name="payment_gateway_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PaymentGateway.PAYFAST,
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            name="payment_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PaymentStatus.PENDING,
        nullable=False,
    )

    # Our checkout signature at creation, PayFast's pf_payment_id after the ITN
    gateway_id: Mapped[Optional[str]] = mapped_column(String(128), index=True, nullable=True)
    payment_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, default=dict, nullable=False
    )

    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Payment {self.id} {self.status.value} {self.amount} {self.currency}>"
