"""Compensation for charges that were captured by an attempt that then aborted."""

import threading

import structlog

from storefront.checkout.attempt import CheckoutAttempt
from storefront.payments.gateway.port import PaymentGateway, PaymentUnavailable

logger = structlog.get_logger(__name__)


class ChargeKeys:
    """Maps a checkout's idempotency key to the key sent to the gateway.

    Retrying after a ``PaymentFault`` must reach the gateway with the same key
    so it cannot charge twice. Once a charge has been refunded its key is
    retired: the gateway would replay the refunded charge as a success, so the
    next attempt under the same checkout key charges under a fresh one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generations: dict[str, int] = {}

    def gateway_key(self, idempotency_key: str) -> str:
        with self._lock:
            generation = self._generations.get(idempotency_key, 0)
        return f"{idempotency_key}:{generation}" if generation else idempotency_key

    def retire(self, idempotency_key: str) -> None:
        with self._lock:
            self._generations[idempotency_key] = self._generations.get(idempotency_key, 0) + 1

    def reset(self) -> None:
        with self._lock:
            self._generations.clear()


charge_keys = ChargeKeys()


class ChargeReconciler:
    def __init__(self, gateway: PaymentGateway, timeout: float, keys: ChargeKeys | None = None):
        self.gateway = gateway
        self.timeout = timeout
        self.keys = keys or charge_keys

    def reverse(self, attempt: CheckoutAttempt, reason: str) -> bool:
        """Refund the attempt's charge. Returns True if the gateway confirmed the refund.

        A confirmed refund retires the attempt's key. A failed refund leaves
        the customer charged with no order. It is logged at error level with
        everything needed to settle it by hand.
        """
        reference = attempt.charge.provider_reference
        try:
            result = self.gateway.create_refund(
                provider_reference=reference,
                amount=attempt.total,
                reason=reason,
                timeout=self.timeout,
            )
        except PaymentUnavailable as exc:
            logger.error(
                "charge_reconciliation_required",
                payment_reference=reference,
                amount=str(attempt.total),
                idempotency_key=attempt.idempotency_key,
                reason=reason,
                refund_error=str(exc),
            )
            return False

        if not result.success:
            logger.error(
                "charge_reconciliation_required",
                payment_reference=reference,
                amount=str(attempt.total),
                idempotency_key=attempt.idempotency_key,
                reason=reason,
                refund_error=result.failure_reason,
            )
            return False

        self.keys.retire(attempt.idempotency_key)
        logger.warning(
            "charge_refunded",
            payment_reference=reference,
            refund_id=result.gateway_refund_id,
            amount=str(attempt.total),
            reason=reason,
        )
        return True
