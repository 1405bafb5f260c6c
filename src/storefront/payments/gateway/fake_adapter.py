"""Configurable fake payment gateway for development and testing.

No external calls are made. The gateway can be told at runtime to approve,
decline, be unreachable, or answer slowly, which covers every branch of the
checkout:

- Manual API testing via /payments/gateway/configure
- Automated tests with predictable outcomes
- Load tests without real gateway credentials
"""

import threading
import time
from decimal import Decimal
from uuid import uuid4

from storefront.payments.gateway.port import ChargeResult, PaymentGateway, PaymentUnavailable, RefundResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.unavailable: bool = False
        self.latency: float = 0.0
        self.refunds_succeed: bool = True
        self.calls: list[dict] = []
        self._charges: dict[str, ChargeResult] = {}
        self._lock = threading.Lock()

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        unavailable: bool = False,
        latency: float = 0.0,
        refunds_succeed: bool = True,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.unavailable = unavailable
        self.latency = latency
        self.refunds_succeed = refunds_succeed

    def _wait(self, timeout: float) -> None:
        if self.latency <= 0:
            return
        time.sleep(min(self.latency, timeout))
        if self.latency > timeout:
            raise PaymentUnavailable(f"Payment gateway did not answer within {timeout}s", timed_out=True)

    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        token: str,
        idempotency_key: str,
        timeout: float,
    ) -> ChargeResult:
        with self._lock:
            self.calls.append(
                {
                    "method": "create_charge",
                    "amount": amount,
                    "currency": currency,
                    "token": token,
                    "idempotency_key": idempotency_key,
                }
            )

        self._wait(timeout)
        if self.unavailable:
            raise PaymentUnavailable("Payment gateway unavailable")

        with self._lock:
            # A retried key replays the first answer instead of charging again
            if idempotency_key in self._charges:
                return self._charges[idempotency_key]

            if self.should_succeed:
                result = ChargeResult(
                    success=True,
                    provider_reference=f"MOCK-{uuid4().hex}",
                    gateway_status="succeeded",
                )
            else:
                result = ChargeResult(
                    success=False,
                    gateway_status="declined",
                    failure_reason=self.failure_reason,
                )
            self._charges[idempotency_key] = result
            return result

    def create_refund(
        self,
        provider_reference: str,
        amount: Decimal,
        reason: str,
        timeout: float,
    ) -> RefundResult:
        with self._lock:
            self.calls.append(
                {
                    "method": "create_refund",
                    "provider_reference": provider_reference,
                    "amount": amount,
                    "reason": reason,
                }
            )

        self._wait(timeout)
        if self.unavailable:
            raise PaymentUnavailable("Payment gateway unavailable")

        if not self.refunds_succeed:
            return RefundResult(success=False, failure_reason="Refund rejected")

        with self._lock:
            # A refunded charge is never replayed
            for key, charge in list(self._charges.items()):
                if charge.provider_reference == provider_reference:
                    del self._charges[key]
        return RefundResult(success=True, gateway_refund_id=f"MOCK-REFUND-{uuid4().hex}")

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]
