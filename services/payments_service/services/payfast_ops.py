"""PayFast payment initiation and ITN confirmation.

Confirmation state machine per payment: ``pending -> paid`` or
``pending -> failed``. Both are terminal. The payment row and its order are
updated in one transaction while the payment row is locked, so concurrent
redeliveries of the same notification serialize on the lock and the second
one sees the terminal state.

An order can collect several attempts. Once one of them settles the order
(paid, or refunded by an admin), later notifications for the others only
record their own outcome.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.currency import amounts_match, format_amount, parse_amount
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    AlreadyPaidError,
    AmountMismatchError,
    ConflictError,
    InvalidSignatureError,
    MerchantMismatchError,
    NotFoundError,
    ValidationFailedError,
)
from libs.common.logging import get_logger
from libs.common.metrics import PAYMENT_NOTIFICATIONS
from services.payments_service.models import Payment, PaymentGateway, PaymentStatus
from services.payments_service.payfast_client import COMPLETE, PayFastClient
from services.store_service.models import (
    Order,
    OrderPaymentMethod,
    OrderPaymentStatus,
    OrderStatus,
)
from services.store_service.pricing import order_amount
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
settings = get_settings()

ORDER_ID_FIELD = "custom_str2"
PAYMENT_ID_FIELD = "custom_str3"
SETTLED_ORDER_STATUSES = (OrderPaymentStatus.PAID, OrderPaymentStatus.REFUNDED)


@dataclass
class PaymentInitiation:
    payment_url: str
    payment_id: uuid.UUID
    amount: Decimal


@dataclass
class ConfirmationResult:
    payment_id: uuid.UUID
    status: PaymentStatus
    duplicate: bool = False


def _return_url(path: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}{path}"


def _notify_url() -> str:
    return f"{settings.API_BASE_URL.rstrip('/')}/payments/payfast/notify"


# ---------------------------------------------------------------------------
# Initiation
# ---------------------------------------------------------------------------


async def create_payment(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    user: AuthUser,
    client: PayFastClient,
) -> PaymentInitiation:
    """Create a pending payment for an order and return the signed redirect URL.

    All rejections happen before anything is written.
    """
    result = await db.execute(select(Order).where(Order.id == order_id).with_for_update())
    order = result.scalar_one_or_none()
    if order is None or order.user_id != user.user_id:
        raise NotFoundError("Order not found")
    if order.payment_method == OrderPaymentMethod.COD:
        raise ValidationFailedError("Cash on delivery orders are paid on delivery")
    if order.payment_status == OrderPaymentStatus.PAID:
        raise AlreadyPaidError()

    shipping = order.shipping_info or {}
    email = shipping.get("email") or user.email
    if not email:
        raise ValidationFailedError(
            "Email is required for online payment",
            details=[{"field": "shippingInfo.email", "message": "Field required"}],
        )

    amount = order_amount(order.product_type, order.material, order.quantity)
    payment = Payment(
        id=uuid.uuid4(),
        user_id=user.user_id,
        order_id=order.id,
        amount=amount,
        currency=settings.CURRENCY,
        gateway=PaymentGateway.PAYFAST,
        status=PaymentStatus.PENDING,
    )

    checkout = client.build_checkout(
        {
            "return_url": _return_url("/orders/success"),
            "cancel_url": _return_url("/orders/cancel"),
            "notify_url": _notify_url(),
            "name_first": shipping.get("name"),
            "email_address": email,
            "cell_number": shipping.get("phone"),
            "m_payment_id": str(order.id),
            "amount": format_amount(amount),
            "item_name": f"{order.product_type.value} x {order.quantity}",
            "item_description": f"Order #{order.id}",
            "custom_str1": user.user_id,
            ORDER_ID_FIELD: str(order.id),
            PAYMENT_ID_FIELD: str(payment.id),
        }
    )

    payment.gateway_id = checkout.signature
    stored = {k: v for k, v in checkout.fields.items() if k != "merchant_key"}
    payment.payment_metadata = {"checkout": {**stored, "signature": checkout.signature}}
    db.add(payment)
    await db.commit()

    logger.info(
        f"PayFast payment {payment.id} created for order {order.order_number}",
        extra={
            "extra_fields": {
                "payment_id": str(payment.id),
                "order_id": str(order.id),
                "amount": str(amount),
            }
        },
    )
    return PaymentInitiation(
        payment_url=checkout.payment_url, payment_id=payment.id, amount=amount
    )


# ---------------------------------------------------------------------------
# Confirmation (ITN)
# ---------------------------------------------------------------------------


def _parse_id(raw: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        raise NotFoundError(f"{label} not found")


async def confirm_payment(
    db: AsyncSession,
    fields: Mapping[str, str],
    *,
    client: PayFastClient,
    now: Optional[datetime] = None,
) -> ConfirmationResult:
    """Apply a PayFast notification to its payment and order.

    Checks run in a fixed order: signature, merchant, referenced ids, amount,
    then the terminal-state guard. Redelivery of an outcome that is already
    applied is acknowledged without side effects; a conflicting outcome for a
    terminal payment is rejected.
    """
    if not client.verify_notification(fields):
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        raise InvalidSignatureError()

    if not client.merchant_matches(fields):
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        raise MerchantMismatchError()

    if settings.PAYFAST_VALIDATE_WITH_GATEWAY and not await client.validate_with_gateway(
        fields
    ):
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        raise InvalidSignatureError("Notification not confirmed by PayFast")

    missing = [f for f in (ORDER_ID_FIELD, PAYMENT_ID_FIELD) if not fields.get(f)]
    if missing:
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        raise ValidationFailedError(
            "Missing order or payment reference",
            details=[{"field": f, "message": "Field required"} for f in missing],
        )

    try:
        order_id = _parse_id(fields[ORDER_ID_FIELD], "Order")
        payment_id = _parse_id(fields[PAYMENT_ID_FIELD], "Payment")

        result = await db.execute(
            select(Payment).where(Payment.id == payment_id).with_for_update()
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundError("Payment not found")
        if payment.order_id != order_id:
            raise NotFoundError("Order not found for payment")

        result = await db.execute(select(Order).where(Order.id == order_id).with_for_update())
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found")
    except NotFoundError:
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        raise

    try:
        amount_gross = parse_amount(fields.get("amount_gross") or "")
    except ValueError:
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        raise ValidationFailedError(
            "Invalid amount_gross",
            details=[{"field": "amount_gross", "message": "Not a number"}],
        )
    if not amounts_match(amount_gross, payment.amount, settings.PAYFAST_AMOUNT_TOLERANCE):
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        logger.warning(
            f"PayFast amount mismatch for payment {payment.id}",
            extra={
                "extra_fields": {
                    "payment_id": str(payment.id),
                    "expected": str(payment.amount),
                    "reported": str(amount_gross),
                }
            },
        )
        raise AmountMismatchError(
            f"Amount mismatch: expected {format_amount(payment.amount)}, got {amount_gross}"
        )

    reported = (fields.get("payment_status") or "").strip().upper()
    outcome = PaymentStatus.PAID if reported == COMPLETE else PaymentStatus.FAILED

    # IDEMPOTENCY CHECK: a terminal payment only accepts a replay of its own outcome
    if payment.status.is_terminal:
        if payment.status == outcome:
            PAYMENT_NOTIFICATIONS.labels(result="duplicate").inc()
            logger.info(
                f"ITN for payment {payment.id} skipped - already {payment.status.value}",
                extra={"extra_fields": {"payment_id": str(payment.id)}},
            )
            return ConfirmationResult(payment.id, payment.status, duplicate=True)
        PAYMENT_NOTIFICATIONS.labels(result="rejected").inc()
        raise ConflictError(
            f"Payment is already {payment.status.value}; "
            f"refusing to change it to {outcome.value}"
        )

    payment.status = outcome
    payment.gateway_id = fields.get("pf_payment_id") or payment.gateway_id
    payment.payment_metadata = {**(payment.payment_metadata or {}), "itn": dict(fields)}

    if outcome == PaymentStatus.PAID:
        payment.paid_at = now or utc_now()

    # An order settled by another attempt keeps its state; only this attempt is recorded
    if order.payment_status in SETTLED_ORDER_STATUSES:
        logger.warning(
            f"ITN for payment {payment.id} arrived after order {order.order_number} "
            f"was already {order.payment_status.value}; order left unchanged",
            extra={
                "extra_fields": {
                    "payment_id": str(payment.id),
                    "order_id": str(order.id),
                    "outcome": outcome.value,
                }
            },
        )
    elif outcome == PaymentStatus.PAID:
        order.payment_status = OrderPaymentStatus.PAID
        order.status = OrderStatus.PROCESSING
    else:
        order.payment_status = OrderPaymentStatus.FAILED

    await db.commit()

    PAYMENT_NOTIFICATIONS.labels(result=outcome.value).inc()
    logger.info(
        f"PayFast ITN applied: payment {payment.id} -> {outcome.value}",
        extra={
            "extra_fields": {
                "payment_id": str(payment.id),
                "order_id": str(order.id),
                "pf_payment_id": fields.get("pf_payment_id"),
                "payment_status": reported,
            }
        },
    )
    return ConfirmationResult(payment.id, outcome)
