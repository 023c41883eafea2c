import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.schemas import CamelModel
from pydantic import field_serializer
from services.payments_service.models import PaymentGateway, PaymentStatus


class CreatePaymentRequest(CamelModel):
    order_id: uuid.UUID


class CreatePaymentResponse(CamelModel):
    payment_url: str
    payment_id: uuid.UUID
    amount: Decimal

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> float:
        return float(value)


class PaymentResponse(CamelModel):
    id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    currency: str
    gateway: PaymentGateway
    status: PaymentStatus
    gateway_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> float:
        return float(value)


class NotificationAck(CamelModel):
    received: bool = True
    status: PaymentStatus
    duplicate: bool = False
