"""Customer order endpoints: checkout and order history."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import ForbiddenError, NotFoundError
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.cards_service.models import Card
from services.store_service.models import Order, OrderPaymentStatus, OrderStatus
from services.store_service.pricing import order_amount
from services.store_service.schemas import CheckoutResponse, OrderCreate, OrderResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/orders", tags=["orders"])
settings = get_settings()
logger = get_logger(__name__)


@router.post("", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    payload: OrderCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create an order for a physical product.

    ``requiresPayment`` is false for cash on delivery; otherwise the client
    continues with payment initiation.
    """
    if payload.card_id is not None:
        card_owner = await db.scalar(select(Card.user_id).where(Card.id == payload.card_id))
        if card_owner is None:
            raise NotFoundError("Card not found")
        if card_owner != current_user.user_id:
            raise ForbiddenError("You do not own this card")

    order = Order(
        order_number=Order.generate_order_number(),
        user_id=current_user.user_id,
        card_id=payload.card_id,
        product_type=payload.product_type,
        quantity=payload.quantity,
        material=payload.material,
        custom_design=payload.custom_design,
        amount=order_amount(payload.product_type, payload.material, payload.quantity),
        currency=settings.CURRENCY,
        payment_method=payload.payment_method,
        payment_status=OrderPaymentStatus.PENDING,
        status=OrderStatus.PENDING,
        shipping_info=payload.shipping_info.model_dump(by_alias=True, exclude_none=True),
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info(
        f"Order {order.order_number} created",
        extra={
            "extra_fields": {
                "order_id": str(order.id),
                "product_type": order.product_type.value,
                "amount": str(order.amount),
                "payment_method": order.payment_method.value,
            }
        },
    )
    return CheckoutResponse(
        order=OrderResponse.model_validate(order),
        requires_payment=order.requires_payment,
    )


@router.get("", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(Order)
        .where(Order.user_id == current_user.user_id)
        .order_by(Order.created_at.desc())
    )
    return result.scalars().all()


@router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    order = await db.get(Order, order_id)
    if order is None or order.user_id != current_user.user_id:
        raise NotFoundError("Order not found")
    return order
