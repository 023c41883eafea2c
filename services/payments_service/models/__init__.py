"""Payments Service models package."""

from services.payments_service.models.core import Payment
from services.payments_service.models.enums import PaymentGateway, PaymentStatus

__all__ = ["Payment", "PaymentGateway", "PaymentStatus"]
