"""Admin order management: listing and fulfilment status updates."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Order, OrderPaymentStatus, OrderStatus
from services.store_service.schemas import OrderResponse, OrderStatusUpdate
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])
logger = get_logger(__name__)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    status: Optional[OrderStatus] = Query(None),
    payment_status: Optional[OrderPaymentStatus] = Query(None, alias="paymentStatus"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Order).order_by(Order.created_at.desc())
    if status is not None:
        query = query.where(Order.status == status)
    if payment_status is not None:
        query = query.where(Order.payment_status == payment_status)
    result = await db.execute(query.limit(limit).offset(offset))
    return result.scalars().all()


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    order = await db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")

    previous = order.status
    order.status = payload.status
    if payload.payment_status is not None:
        order.payment_status = payload.payment_status
    if payload.tracking_no is not None:
        order.tracking_no = payload.tracking_no

    await db.commit()
    await db.refresh(order)

    logger.info(
        "Order %s status %s -> %s by %s",
        order.order_number,
        previous.value,
        order.status.value,
        admin.user_id,
    )
    return order
