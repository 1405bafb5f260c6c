"""InventoryLedger — serialized, buffered stock reservations.

A reservation session holds the lock of every SKU it may touch for its whole
lifetime. Inside it, reservations decrement in-memory copies of the committed
rows; nothing is written until the owner calls ``flush`` from within its
unit of work. Leaving the session without flushing discards every change, so
an aborted checkout never leaves a reservation behind.
"""

from collections import defaultdict
from contextlib import ExitStack

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.inventory.stock import InventoryItem
from storefront.utils.db import atomic, exclusive
from storefront.utils.locks import KeyedLocks, checkout_locks, sku_key

logger = structlog.get_logger(__name__)


class StockReservation:
    def __init__(self, locks: KeyedLocks, skus, timeout: float | None):
        self._locks = locks
        self._skus = set(skus)
        self._timeout = timeout
        self._stack = ExitStack()
        self._items: dict[str, InventoryItem] = {}
        self._reserved: dict[str, int] = defaultdict(int)
        self._closed = False

    def __enter__(self):
        self._stack.enter_context(self._locks.hold([sku_key(sku) for sku in self._skus], timeout=self._timeout))
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._reserved and not self._closed:
            logger.debug("reservation_discarded", reserved=dict(self._reserved))
        self._items.clear()
        self._reserved.clear()
        self._stack.close()
        return False

    def _item(self, sku) -> InventoryItem | None:
        if sku not in self._skus:
            raise KeyError(f"SKU {sku} is not locked by this reservation")

        if sku not in self._items:
            try:
                with exclusive(self._timeout):
                    self._items[sku] = current_domain.repository_for(InventoryItem).get(sku)
            except ObjectNotFoundError:
                return None
        return self._items[sku]

    def try_reserve(self, sku, quantity) -> bool:
        """Reserve ``quantity`` of ``sku`` if enough is available.

        An unknown SKU has nothing available.
        """
        item = self._item(sku)
        if item is None or not item.can_supply(quantity):
            logger.info(
                "reservation_refused",
                sku=sku,
                requested=quantity,
                available=item.quantity if item else 0,
            )
            return False

        item.reserve(quantity)
        self._reserved[sku] += quantity
        return True

    def release(self, sku, quantity) -> None:
        """Undo a reservation made earlier in this session."""
        if self._reserved.get(sku, 0) < quantity:
            raise ValueError(f"Cannot release {quantity} of {sku}: only {self._reserved.get(sku, 0)} reserved")

        self._items[sku].release(quantity)
        self._reserved[sku] -= quantity
        if not self._reserved[sku]:
            del self._reserved[sku]

    def reserved(self) -> dict[str, int]:
        return dict(self._reserved)

    def flush(self) -> None:
        """Stage the decremented rows on the current unit of work."""
        repo = current_domain.repository_for(InventoryItem)
        for sku in sorted(self._reserved):
            repo.add(self._items[sku])
        self._closed = True


class InventoryLedger:
    def __init__(self, locks: KeyedLocks | None = None, lock_timeout: float | None = None):
        self.locks = locks or checkout_locks
        self.lock_timeout = lock_timeout

    def open(self, skus) -> StockReservation:
        return StockReservation(self.locks, skus, self.lock_timeout)

    def available(self, sku) -> int:
        try:
            return current_domain.repository_for(InventoryItem).get(sku).quantity
        except ObjectNotFoundError:
            return 0

    def receive(self, sku, quantity) -> InventoryItem:
        """Add received goods to a SKU, creating its row on first receipt."""
        with self.locks.hold([sku_key(sku)], timeout=self.lock_timeout):
            repo = current_domain.repository_for(InventoryItem)
            try:
                item = repo.get(sku)
            except ObjectNotFoundError:
                item = InventoryItem.create(sku)

            item.receive(quantity)

            with atomic(self.lock_timeout):
                repo.add(item)

        logger.info("stock_received", sku=sku, quantity=quantity, available=item.quantity)
        return item
