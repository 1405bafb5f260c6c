"""CheckoutOrchestrator — turns a customer's cart into an order.

One call runs one attempt, strictly in order:

1. Validate the request (before any side effect).
2. Load the cart under the customer's cart lock.
3. Total the cart from its line snapshots.
4. Reserve stock for every line under the SKU locks.
5. Charge the payment gateway. A decline still produces an order.
6. Build the order and empty the cart in memory.
7. Commit stock, order and cart in one unit of work.

Nothing is written before step 7. If the attempt stops earlier, the locks are
released and every staged change is dropped. The only effect that can
survive an aborted attempt is a captured charge, which is refunded.
"""

from contextlib import ExitStack
from decimal import Decimal
from uuid import uuid4

import structlog
from protean.utils.globals import current_domain

from storefront.cart.store import CartStore
from storefront.checkout.attempt import AttemptState, CheckoutAttempt
from storefront.checkout.errors import (
    CartEmptyError,
    CheckoutError,
    InsufficientStockError,
    PaymentFault,
    PersistenceError,
    UnexpectedError,
    ValidationError,
)
from storefront.checkout.outcome import CheckoutResult, OrderSummary
from storefront.checkout.reconciliation import ChargeReconciler, charge_keys
from storefront.checkout.unit_of_work import CheckoutUnitOfWork
from storefront.config import CheckoutSettings
from storefront.inventory.ledger import InventoryLedger, StockReservation
from storefront.order.order import Order, OrderStatus, to_money
from storefront.order.store import OrderDraft, OrderStore
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import ChargeResult, PaymentGateway, PaymentUnavailable
from storefront.utils.db import CommitTimeout
from storefront.utils.locks import KeyedLocks, LockTimeout, cart_key, checkout_locks

logger = structlog.get_logger(__name__)


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


class CheckoutOrchestrator:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        settings: CheckoutSettings | None = None,
        carts: CartStore | None = None,
        ledger: InventoryLedger | None = None,
        orders: OrderStore | None = None,
        locks: KeyedLocks | None = None,
    ):
        self.settings = settings or CheckoutSettings.from_domain(current_domain)
        self.locks = locks or checkout_locks
        self.carts = carts or CartStore(self.locks, self.settings.lock_timeout)
        self.ledger = ledger or InventoryLedger(self.locks, self.settings.lock_timeout)
        self.orders = orders or OrderStore()
        self._gateway = gateway

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    def checkout(self, customer_id, payment_token, idempotency_key=None) -> CheckoutResult:
        """Run one checkout attempt. Never raises; failures come back on the result."""
        attempt = CheckoutAttempt(
            customer_id=customer_id,
            payment_token=payment_token,
            idempotency_key=idempotency_key or uuid4().hex,
        )

        with structlog.contextvars.bound_contextvars(
            checkout_attempt=attempt.idempotency_key,
            customer_id=customer_id,
        ):
            try:
                order = self._run(attempt)
            except CheckoutError as exc:
                return self._fail(attempt, exc)
            except CommitTimeout:
                return self._fail(attempt, PersistenceError("storage is busy, please retry"))
            except Exception:
                logger.exception("checkout_unexpected_error", state=attempt.state.value)
                return self._fail(attempt, UnexpectedError())

            logger.info(
                "checkout_completed",
                order_id=order.id,
                status=order.status,
                total=str(order.total_amount),
            )
            return CheckoutResult(order=OrderSummary.from_order(order))

    # -------------------------------------------------------------------
    # Attempt
    # -------------------------------------------------------------------
    def _run(self, attempt: CheckoutAttempt) -> Order:
        self._validate(attempt)

        with ExitStack() as stack:
            self._acquire(
                stack,
                self.locks.hold([cart_key(attempt.customer_id)], timeout=self.settings.lock_timeout),
                "another checkout for this cart is in progress",
            )

            cart = self.carts.get_cart(attempt.customer_id)
            if cart is None or cart.is_empty:
                raise CartEmptyError()
            attempt.advance(AttemptState.CART_LOADED)

            lines = [(line.sku, line.name, Decimal(str(line.unit_price)), line.quantity) for line in cart.lines]
            attempt.total = to_money(sum((price * quantity for _, _, price, quantity in lines), Decimal("0")))
            logger.debug("checkout_cart_loaded", lines=len(lines), total=str(attempt.total))

            attempt.advance(AttemptState.RESERVING)
            reservation = self._acquire(
                stack,
                self.ledger.open(sku for sku, _, _, _ in lines),
                "inventory is busy, please retry",
            )
            self._reserve(reservation, lines)

            attempt.advance(AttemptState.CHARGING)
            attempt.charge = self._charge(attempt)
            status = OrderStatus.PAID if attempt.charge.success else OrderStatus.FAILED
            attempt.advance(AttemptState.PAID if attempt.charge.success else AttemptState.FAILED)

            uow = CheckoutUnitOfWork(self.orders, self.carts, commit_timeout=self.settings.commit_timeout)
            uow.register_reservation(reservation)
            uow.register_order(
                self.orders.create_order(
                    OrderDraft(
                        customer_id=attempt.customer_id,
                        status=status,
                        total=attempt.total,
                        currency=self.settings.currency,
                        lines=tuple(lines),
                        payment_reference=attempt.charge.provider_reference,
                        payment_error=attempt.charge.failure_reason,
                        idempotency_key=attempt.idempotency_key,
                    )
                )
            )
            self.carts.clear_lines(cart)
            uow.register_cart(cart)

            attempt.advance(AttemptState.COMMITTING)
            uow.commit()
            attempt.advance(AttemptState.COMMITTED)

            return uow.order

    def _validate(self, attempt: CheckoutAttempt) -> None:
        if _is_blank(attempt.customer_id):
            raise ValidationError("customer id required")
        if _is_blank(attempt.payment_token):
            raise ValidationError("payment token required")

    def _acquire(self, stack: ExitStack, lock_context, message: str):
        try:
            return stack.enter_context(lock_context)
        except LockTimeout as exc:
            raise PersistenceError(message) from exc

    def _reserve(self, reservation: StockReservation, lines) -> None:
        reserved = []
        for sku, _, _, quantity in lines:
            if not reservation.try_reserve(sku, quantity):
                for done_sku, done_quantity in reversed(reserved):
                    reservation.release(done_sku, done_quantity)
                raise InsufficientStockError(sku, quantity)
            reserved.append((sku, quantity))

    def _charge(self, attempt: CheckoutAttempt) -> ChargeResult:
        try:
            result = self.gateway.create_charge(
                amount=attempt.total,
                currency=self.settings.currency,
                token=attempt.payment_token,
                idempotency_key=charge_keys.gateway_key(attempt.idempotency_key),
                timeout=self.settings.payment_timeout,
            )
        except PaymentUnavailable as exc:
            raise PaymentFault(
                "payment service unavailable, please retry",
                idempotency_key=attempt.idempotency_key,
                timed_out=exc.timed_out,
            ) from exc

        if not result.success:
            logger.info("payment_declined", reason=result.failure_reason)
        return result

    # -------------------------------------------------------------------
    # Failure
    # -------------------------------------------------------------------
    def _fail(self, attempt: CheckoutAttempt, error: CheckoutError) -> CheckoutResult:
        failed_in = attempt.state
        attempt.abort()

        if attempt.payment_captured:
            refunded = self._reverse_charge(attempt, error)
            if isinstance(error, PersistenceError):
                error.payment_reference = attempt.charge.provider_reference
                error.refunded = refunded

        log = logger.warning if error.status_code < 500 else logger.error
        log(
            "checkout_failed",
            kind=error.kind.value,
            message=error.message,
            state=failed_in.value,
        )
        return CheckoutResult(error=error)

    def _reverse_charge(self, attempt: CheckoutAttempt, error: CheckoutError) -> bool:
        reconciler = ChargeReconciler(self.gateway, timeout=self.settings.payment_timeout)
        try:
            return reconciler.reverse(attempt, reason=f"checkout aborted: {error.message}")
        except Exception:
            logger.exception(
                "charge_reconciliation_required",
                payment_reference=attempt.charge.provider_reference,
                amount=str(attempt.total),
            )
            return False
