"""Payment status lookup for the buyer."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError
from libs.db.session import get_async_db
from services.payments_service.models import Payment
from services.payments_service.schemas import PaymentResponse
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    payment = await db.get(Payment, payment_id)
    if payment is None or payment.user_id != current_user.user_id:
        raise NotFoundError("Payment not found")
    return payment
