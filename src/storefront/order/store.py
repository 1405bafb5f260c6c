"""OrderStore — creates orders and reads them back.

Orders are append-only: ``add`` refuses an identity that is already stored,
and there is no update or delete.
"""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderDraft:
    customer_id: str
    status: OrderStatus
    total: Decimal
    currency: str
    lines: tuple = field(default_factory=tuple)  # (sku, name, unit_price, quantity)
    payment_reference: str | None = None
    payment_error: str | None = None
    idempotency_key: str | None = None


class DuplicateOrderError(Exception):
    pass


class _OrderSequence:
    """Monotonic order numbers, seeded from the highest stored id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last: int | None = None

    def next(self) -> int:
        with self._lock:
            if self._last is None:
                latest = current_domain.repository_for(Order)._dao.query.order_by("-id").limit(1).all().items
                self._last = latest[0].id if latest else 0
            self._last += 1
            return self._last

    def reset(self):
        with self._lock:
            self._last = None


_sequence = _OrderSequence()


def reset_order_sequence():
    """Forget the cached high-water mark; the next id is re-read from storage."""
    _sequence.reset()


class OrderStore:
    def next_identity(self) -> int:
        return _sequence.next()

    def create_order(self, draft: OrderDraft) -> Order:
        """Build the order for ``draft`` with a fresh id. Nothing is written until ``add``."""
        return Order.place(
            order_id=self.next_identity(),
            customer_id=draft.customer_id,
            status=draft.status,
            total=draft.total,
            currency=draft.currency,
            lines=draft.lines,
            created_at=datetime.now(UTC),
            payment_reference=draft.payment_reference,
            payment_error=draft.payment_error,
            idempotency_key=draft.idempotency_key,
        )

    def add(self, order: Order) -> None:
        repo = current_domain.repository_for(Order)
        try:
            repo.get(order.id)
        except ObjectNotFoundError:
            repo.add(order)
            return

        raise DuplicateOrderError(f"Order {order.id} already exists and cannot be modified")

    def get(self, order_id) -> Order:
        return current_domain.repository_for(Order).get(order_id)

    def list_for_customer(self, customer_id) -> list[Order]:
        orders = current_domain.repository_for(Order)._dao.query.filter(customer_id=customer_id).all().items
        return sorted(orders, key=lambda o: o.id, reverse=True)
