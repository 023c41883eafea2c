"""PayFast endpoints: payment initiation and the ITN callback."""

from fastapi import APIRouter, Depends, Request
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.common.rate_limit import payment_limit
from libs.db.session import get_async_db
from services.payments_service.payfast_client import PayFastClient, get_payfast_client
from services.payments_service.schemas import (
    CreatePaymentRequest,
    CreatePaymentResponse,
    NotificationAck,
)
from services.payments_service.services import payfast_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/payments/payfast", tags=["payfast"])
logger = get_logger(__name__)


@router.post("/create", response_model=CreatePaymentResponse)
@payment_limit
async def create_payfast_payment(
    request: Request,
    payload: CreatePaymentRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    client: PayFastClient = Depends(get_payfast_client),
):
    """Start a PayFast payment for one of the caller's orders."""
    initiation = await payfast_ops.create_payment(
        db, order_id=payload.order_id, user=current_user, client=client
    )
    return CreatePaymentResponse(
        payment_url=initiation.payment_url,
        payment_id=initiation.payment_id,
        amount=initiation.amount,
    )


@router.post("/notify", response_model=NotificationAck)
async def payfast_notify(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    client: PayFastClient = Depends(get_payfast_client),
):
    """
    PayFast ITN endpoint (no auth; verified by signature).

    The body is form-encoded. A well-formed negative notification is still
    acknowledged so PayFast stops retrying.
    """
    form = await request.form()
    fields = {key: str(value) for key, value in form.multi_items()}

    result = await payfast_ops.confirm_payment(db, fields, client=client)
    return NotificationAck(status=result.status, duplicate=result.duplicate)
