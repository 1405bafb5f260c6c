"""CartStore — the checkout's view of carts.

Reads return the committed cart. Clearing is staged on the in-memory
aggregate and only reaches storage when the caller adds the cart inside its
own unit of work.
"""

from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.utils.db import exclusive
from storefront.utils.locks import KeyedLocks, cart_key, checkout_locks

logger = structlog.get_logger(__name__)


class CartStore:
    def __init__(self, locks: KeyedLocks | None = None, lock_timeout: float | None = None):
        self.locks = locks or checkout_locks
        self.lock_timeout = lock_timeout

    def get_cart(self, customer_id) -> Cart | None:
        try:
            with exclusive(self.lock_timeout):
                return current_domain.repository_for(Cart).get(customer_id)
        except ObjectNotFoundError:
            return None

    def clear_lines(self, cart: Cart) -> int:
        """Empty ``cart`` in memory. Nothing is written until ``add``."""
        removed = cart.clear()
        logger.debug("cart_lines_cleared", customer_id=cart.customer_id, lines_removed=removed)
        return removed

    def add(self, cart: Cart) -> None:
        current_domain.repository_for(Cart).add(cart)

    @contextmanager
    def editing(self, customer_id):
        """Serialize a cart edit against checkouts of the same cart.

        A checkout holds the cart lock from the moment it reads the lines
        until its commit, so an edit made in between cannot be lost.
        """
        with self.locks.hold([cart_key(customer_id)], timeout=self.lock_timeout):
            with exclusive(self.lock_timeout):
                yield
