"""Business error taxonomy and the API-wide exception handler.

Services raise `DomainError` subclasses; views never translate them by hand.
`api_exception_handler` (wired as DRF's ``EXCEPTION_HANDLER``) renders every
error as ``{"status": "error", "message": ..., "code": ...}`` so clients see a
single shape and no stack traces.
"""

import logging

from django.db import OperationalError
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger("shopfront.errors")


class DomainError(Exception):
    """Base class for expected business failures mapped to an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
    code = "internal_error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"
    code = "validation_error"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"
    code = "not_found"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting state"
    code = "conflict"


class Unauthorized(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"
    code = "unauthorized"


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"
    code = "forbidden"


class GatewayError(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment provider unavailable"
    code = "gateway_error"


class InternalError(DomainError):
    pass


# Cart, inventory and order failures


class InvalidQuantity(ValidationError):
    default_message = "Quantity must be at least 1"
    code = "invalid_quantity"


class InsufficientStock(ValidationError):
    default_message = "Insufficient stock"
    code = "insufficient_stock"


class EmptyCart(ValidationError):
    default_message = "Cart is empty"
    code = "empty_cart"


class ProductUnavailable(NotFound):
    default_message = "Product is no longer available"
    code = "product_unavailable"


# Checkout and payment failures


class OrderNotEligible(NotFound):
    default_message = "Order not found or not eligible for online payment"
    code = "order_not_eligible"


class AlreadyPaid(ValidationError):
    default_message = "Order is already paid"
    code = "already_paid"


class PaymentNotPending(ValidationError):
    default_message = "Order payment is not pending"
    code = "payment_not_pending"


class IncompletePayload(ValidationError):
    default_message = "Incomplete payment details"
    code = "incomplete_payload"


class InvalidSignature(ValidationError):
    default_message = "Payment verification failed"
    code = "invalid_signature"


def _error_body(message, code, **extra) -> dict:
    body = {"status": "error", "message": str(message), "code": code}
    body.update(extra)
    return body


def api_exception_handler(exc, context):
    """Render domain, DRF and unexpected errors with one envelope."""

    if isinstance(exc, DomainError):
        return Response(_error_body(exc.message, exc.code), status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is not None:
        if isinstance(exc, drf_exceptions.ValidationError):
            response.data = _error_body("Invalid input", "validation_error", errors=response.data)
        else:
            data = response.data if isinstance(response.data, dict) else {}
            detail = data.get("detail", "Request failed")
            code = getattr(detail, "code", None) or "error"
            response.data = _error_body(detail, code)
        return response

    view = context.get("view")
    if isinstance(exc, OperationalError):
        # Commit conflicts and lost connections leave nothing applied; the caller may retry.
        logger.warning("request.transaction_failed", extra={"view": type(view).__name__, "error": str(exc)})
        return Response(
            _error_body("Temporary failure, please retry", "transaction_failed", retryable=True),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    logger.exception("request.unhandled_error", extra={"view": type(view).__name__})
    return Response(
        _error_body(InternalError.default_message, InternalError.code),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
