"""
Closed set of failures the service layer can raise.

Every error is an HTTPException so FastAPI can render it without extra
plumbing, but it also carries a machine-readable ``kind`` and a ``context``
dict (entity ids, required permissions, charge ids) for clients and logs.
"""

from enum import Enum
from typing import Any
from fastapi import HTTPException
from starlette import status


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    MISMATCH = "MISMATCH"
    INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_STATE_UNKNOWN = "PAYMENT_STATE_UNKNOWN"
    INCONSISTENT = "INCONSISTENT"
    CHECKOUT_IN_PROGRESS = "CHECKOUT_IN_PROGRESS"
    CART_EMPTY = "CART_EMPTY"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    MAIL_DELIVERY_FAILED = "MAIL_DELIVERY_FAILED"


STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_OR_EXPIRED_TOKEN: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PAYMENT_FAILED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.PAYMENT_STATE_UNKNOWN: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INCONSISTENT: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.CHECKOUT_IN_PROGRESS: status.HTTP_409_CONFLICT,
    ErrorKind.CART_EMPTY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_EMAIL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MAIL_DELIVERY_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class AppError(HTTPException):
    kind: ErrorKind

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(status_code=STATUS_BY_KIND[self.kind], detail=message)


class Unauthenticated(AppError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "You must be logged in to do that!", **context: Any):
        super().__init__(message, **context)


class Forbidden(AppError):
    kind = ErrorKind.FORBIDDEN


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND


class InvalidCredential(AppError):
    kind = ErrorKind.INVALID_CREDENTIAL


class Mismatch(AppError):
    kind = ErrorKind.MISMATCH


class InvalidOrExpiredToken(AppError):
    kind = ErrorKind.INVALID_OR_EXPIRED_TOKEN

    def __init__(self, message: str = "This token is either invalid or expired!", **context: Any):
        super().__init__(message, **context)


class PaymentFailed(AppError):
    kind = ErrorKind.PAYMENT_FAILED


class PaymentStateUnknown(AppError):
    kind = ErrorKind.PAYMENT_STATE_UNKNOWN


class Inconsistent(AppError):
    kind = ErrorKind.INCONSISTENT


class CheckoutInProgress(AppError):
    kind = ErrorKind.CHECKOUT_IN_PROGRESS


class CartEmpty(AppError):
    kind = ErrorKind.CART_EMPTY


class DuplicateEmail(AppError):
    kind = ErrorKind.DUPLICATE_EMAIL


class MailDeliveryFailed(AppError):
    kind = ErrorKind.MAIL_DELIVERY_FAILED
