"""Fixed price table for physical products, in the store currency."""

from decimal import Decimal
from typing import Optional

from services.store_service.models import Material, ProductType

UNIT_PRICES: dict[ProductType, Decimal] = {
    ProductType.NFC_CARD: Decimal("250.00"),
    ProductType.QR_STICKER: Decimal("50.00"),
    ProductType.SUBSCRIPTION: Decimal("999.00"),
    ProductType.REMAP: Decimal("100.00"),
}

# Material premiums; any material not listed uses the base unit price.
MATERIAL_UNIT_PRICES: dict[tuple[ProductType, Material], Decimal] = {
    (ProductType.NFC_CARD, Material.METAL): Decimal("500.00"),
}


def unit_price(product_type: ProductType, material: Optional[Material] = None) -> Decimal:
    if material is not None:
        premium = MATERIAL_UNIT_PRICES.get((product_type, material))
        if premium is not None:
            return premium
    return UNIT_PRICES[product_type]


def order_amount(
    product_type: ProductType, material: Optional[Material], quantity: int
) -> Decimal:
    """Total for ``quantity`` units. Deterministic for the same inputs."""
    if quantity < 1:
        raise ValueError("quantity must be at least 1")
    return unit_price(product_type, material) * quantity
