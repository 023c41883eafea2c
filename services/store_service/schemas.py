"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.schemas import CamelModel
from pydantic import EmailStr, Field, field_serializer
from services.store_service.models import (
    Material,
    OrderPaymentMethod,
    OrderPaymentStatus,
    OrderStatus,
    ProductType,
)

# ============================================================================
# CHECKOUT
# ============================================================================


class ShippingInfo(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = None


class OrderCreate(CamelModel):
    card_id: Optional[uuid.UUID] = None
    product_type: ProductType
    quantity: int = Field(..., ge=1, le=100)
    material: Optional[Material] = None
    custom_design: Optional[str] = None
    payment_method: OrderPaymentMethod
    shipping_info: ShippingInfo


class OrderResponse(CamelModel):
    id: uuid.UUID
    order_number: str
    user_id: str
    card_id: Optional[uuid.UUID] = None
    product_type: ProductType
    quantity: int
    material: Optional[Material] = None
    custom_design: Optional[str] = None
    amount: Decimal
    currency: str
    payment_method: OrderPaymentMethod
    payment_status: OrderPaymentStatus
    status: OrderStatus
    shipping_info: dict
    tracking_no: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> float:
        return float(value)


class CheckoutResponse(CamelModel):
    success: bool = True
    order: OrderResponse
    requires_payment: bool


# ============================================================================
# ADMIN
# ============================================================================


class OrderStatusUpdate(CamelModel):
    status: OrderStatus
    payment_status: Optional[OrderPaymentStatus] = None
    tracking_no: Optional[str] = Field(None, max_length=100)
