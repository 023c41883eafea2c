"""Store order model: one physical product order per checkout."""

import random
import string
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import GUID, Base, JSONType
from services.store_service.models.enums import (
    Material,
    OrderPaymentMethod,
    OrderPaymentStatus,
    OrderStatus,
    ProductType,
    enum_values,
)
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

# Registers the cards table for the foreign key below
from services.cards_service.models import Card  # noqa: F401


class Order(Base):
    __tablename__ = "store_orders"

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )

    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    card_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID, ForeignKey("cards.id", ondelete="SET NULL"), nullable=True
    )

    product_type: Mapped[ProductType] = mapped_column(
        SAEnum(
            ProductType,
            name="store_product_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    material: Mapped[Optional[Material]] = mapped_column(
        SAEnum(
            Material,
            name="store_material_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )
    custom_design: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Priced at checkout from the fixed price table
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)

    payment_method: Mapped[OrderPaymentMethod] = mapped_column(
        SAEnum(
            OrderPaymentMethod,
            name="store_payment_method_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    payment_status: Mapped[OrderPaymentStatus] = mapped_column(
        SAEnum(
            OrderPaymentStatus,
            name="store_payment_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=OrderPaymentStatus.PENDING,
        nullable=False,
    )
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            name="store_order_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=OrderStatus.PENDING,
        nullable=False,
    )

    # {name, email, phone, address, city, postalCode, country, notes}
    shipping_info: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    tracking_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("quantity BETWEEN 1 AND 100", name="order_quantity_range"),
    )

    @staticmethod
    def generate_order_number() -> str:
        """Generate an order number like TC-20260104-A1B2C."""
        date_part = utc_now().strftime("%Y%m%d")
        random_part = "".join(random.choices(string.ascii_uppercase + string.digits, k=5))
        return f"TC-{date_part}-{random_part}"

    @property
    def requires_payment(self) -> bool:
        return self.payment_method != OrderPaymentMethod.COD

    def __repr__(self):
        return f"<Order {self.order_number} {self.payment_status.value}/{self.status.value}>"
