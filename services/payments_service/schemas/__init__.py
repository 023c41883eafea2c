from services.payments_service.schemas.main import (
    CreatePaymentRequest,
    CreatePaymentResponse,
    NotificationAck,
    PaymentResponse,
)

__all__ = [
    "CreatePaymentRequest",
    "CreatePaymentResponse",
    "NotificationAck",
    "PaymentResponse",
]
