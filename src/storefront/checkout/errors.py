"""Checkout failure taxonomy.

Every way a checkout can fail maps to one of these. The orchestrator catches
them at its boundary and hands them back as a structured result; the HTTP
layer only needs ``status_code`` and ``to_dict``. A declined payment is not
an error: it produces an order with status Failed.
"""

from enum import Enum


class ErrorKind(Enum):
    VALIDATION = "validation"
    CART_EMPTY = "cart_empty"
    INSUFFICIENT_STOCK = "insufficient_stock"
    PAYMENT_FAULT = "payment_fault"
    PERSISTENCE = "persistence"
    UNEXPECTED = "unexpected"


class CheckoutError(Exception):
    kind: ErrorKind = ErrorKind.UNEXPECTED
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class ValidationError(CheckoutError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class CartEmptyError(CheckoutError):
    kind = ErrorKind.CART_EMPTY
    status_code = 400

    def __init__(self, message: str = "cart is empty"):
        super().__init__(message)


class InsufficientStockError(CheckoutError):
    kind = ErrorKind.INSUFFICIENT_STOCK
    status_code = 409

    def __init__(self, sku: str, requested: int | None = None):
        super().__init__(f"insufficient stock for {sku}")
        self.sku = sku
        self.requested = requested

    def to_dict(self) -> dict:
        return {**super().to_dict(), "sku": self.sku}


class PaymentFault(CheckoutError):
    """The payment outcome is unknown. Retrying with the same key is safe."""

    kind = ErrorKind.PAYMENT_FAULT
    status_code = 502

    def __init__(self, message: str, idempotency_key: str | None = None, timed_out: bool = False):
        super().__init__(message)
        self.idempotency_key = idempotency_key
        self.timed_out = timed_out

    def to_dict(self) -> dict:
        return {**super().to_dict(), "idempotency_key": self.idempotency_key}


class PersistenceError(CheckoutError):
    """Nothing was written.

    If ``payment_reference`` is set the customer was charged anyway;
    ``refunded`` says whether the charge was reversed.
    """

    kind = ErrorKind.PERSISTENCE
    status_code = 503

    def __init__(self, message: str, payment_reference: str | None = None, refunded: bool | None = None):
        super().__init__(message)
        self.payment_reference = payment_reference
        self.refunded = refunded

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.payment_reference:
            data["payment_reference"] = self.payment_reference
            data["refunded"] = bool(self.refunded)
        return data


class UnexpectedError(CheckoutError):
    kind = ErrorKind.UNEXPECTED
    status_code = 500

    def __init__(self, message: str = "an unexpected error occurred during checkout"):
        super().__init__(message)
