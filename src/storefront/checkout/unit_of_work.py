"""CheckoutUnitOfWork — the single atomic write that ends a checkout.

Everything a checkout changes is staged here: the stock reservation, the new
order and the emptied cart. ``commit`` writes all three in one Protean unit
of work; if any part fails, none of it is stored.
"""

import structlog

from storefront.cart.cart import Cart
from storefront.cart.store import CartStore
from storefront.checkout.errors import PersistenceError
from storefront.inventory.ledger import StockReservation
from storefront.order.order import Order
from storefront.order.store import OrderStore
from storefront.utils.db import CommitTimeout, atomic

logger = structlog.get_logger(__name__)


class CheckoutUnitOfWork:
    def __init__(self, orders: OrderStore, carts: CartStore, commit_timeout: float | None = None):
        self.orders = orders
        self.carts = carts
        self.commit_timeout = commit_timeout
        self.reservation: StockReservation | None = None
        self.order: Order | None = None
        self.cart: Cart | None = None

    def register_reservation(self, reservation: StockReservation) -> None:
        self.reservation = reservation

    def register_order(self, order: Order) -> None:
        self.order = order

    def register_cart(self, cart: Cart) -> None:
        self.cart = cart

    def commit(self) -> None:
        if self.reservation is None or self.order is None or self.cart is None:
            raise PersistenceError("checkout unit of work is incomplete")

        try:
            with atomic(self.commit_timeout):
                self.reservation.flush()
                self.orders.add(self.order)
                self.carts.add(self.cart)
        except CommitTimeout as exc:
            logger.error("checkout_commit_timed_out", timeout=self.commit_timeout)
            raise PersistenceError("timed out waiting to save the order") from exc
        except Exception as exc:
            logger.error("checkout_commit_failed", error=str(exc), error_type=type(exc).__name__)
            raise PersistenceError("could not save the order") from exc

        logger.info(
            "checkout_committed",
            order_id=self.order.id,
            reserved=self.reservation.reserved(),
        )
