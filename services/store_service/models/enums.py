"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class ProductType(str, enum.Enum):
    NFC_CARD = "NFC_CARD"
    QR_STICKER = "QR_STICKER"
    SUBSCRIPTION = "SUBSCRIPTION"
    REMAP = "REMAP"


class Material(str, enum.Enum):
    PLASTIC = "plastic"
    METAL = "metal"
    WOOD = "wood"


class OrderPaymentMethod(str, enum.Enum):
    PAYFAST = "PAYFAST"
    COD = "COD"


class OrderPaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"  # set by admins only


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
