"""Payment gateway port (abstract interface).

Every adapter reports a charge in one of three ways:

- ``ChargeResult(success=True)``: money was taken and cannot be taken back
  except by a refund.
- ``ChargeResult(success=False)``: the gateway answered and declined.
- ``PaymentUnavailable``: the gateway could not be reached, timed out, or
  answered with something unusable. The outcome of the charge is unknown to
  the caller, so it must never be treated as a decline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ChargeResult:
    """Result of a payment charge attempt."""

    success: bool
    provider_reference: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    gateway_refund_id: str | None = None
    failure_reason: str | None = None


class PaymentUnavailable(Exception):
    """The gateway did not give a usable answer within the timeout."""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        token: str,
        idempotency_key: str,
        timeout: float,
    ) -> ChargeResult:
        """Charge ``amount`` to the payment method behind ``token``.

        Repeating a call with the same ``idempotency_key`` must not charge
        twice.
        """
        ...

    @abstractmethod
    def create_refund(
        self,
        provider_reference: str,
        amount: Decimal,
        reason: str,
        timeout: float,
    ) -> RefundResult:
        """Refund a previous charge."""
        ...
