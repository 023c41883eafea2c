"""Application error taxonomy.

Every error raised across a request boundary is one of these. Each carries a
stable machine-readable ``code`` alongside the HTTP status so clients can
branch without parsing messages.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    code: str = "INTERNAL_ERROR"
    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Any = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        super().__init__(
            status_code=self.status_code_default,
            detail=self.message,
            headers=headers,
        )


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code_default = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code_default = status.HTTP_403_FORBIDDEN
    default_message = "You do not have access to this resource"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ValidationFailedError(AppError):
    """Malformed input. ``details`` holds a list of field-level issues."""

    code = "VALIDATION_FAILED"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Validation failed"


class PreconditionFailedError(AppError):
    code = "PRECONDITION_FAILED"
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_message = "Precondition failed"


class ConflictError(AppError):
    code = "CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class AlreadyPaidError(ConflictError):
    code = "ALREADY_PAID"
    default_message = "Order is already paid"


class InvalidSignatureError(AppError):
    code = "INVALID_SIGNATURE"
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid signature"


class MerchantMismatchError(AppError):
    code = "MERCHANT_MISMATCH"
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_message = "Merchant ID mismatch"


class AmountMismatchError(AppError):
    code = "AMOUNT_MISMATCH"
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_message = "Amount mismatch"
