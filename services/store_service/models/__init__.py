"""Store Service models package."""

from services.store_service.models.enums import (
    Material,
    OrderPaymentMethod,
    OrderPaymentStatus,
    OrderStatus,
    ProductType,
)
from services.store_service.models.orders import Order

__all__ = [
    "Material",
    "Order",
    "OrderPaymentMethod",
    "OrderPaymentStatus",
    "OrderStatus",
    "ProductType",
]
