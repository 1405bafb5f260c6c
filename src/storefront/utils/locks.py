"""Named mutexes used to serialize work on a single cart or SKU."""

import threading
from contextlib import contextmanager

import structlog

logger = structlog.get_logger(__name__)


class LockTimeout(Exception):
    def __init__(self, key: str, timeout: float | None):
        super().__init__(f"Timed out after {timeout}s waiting for {key}")
        self.key = key
        self.timeout = timeout


class KeyedLocks:
    """A registry of one lock per key, created on first use."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, keys, timeout: float | None = None):
        """Acquire every lock in ``keys`` for the duration of the block.

        Keys are taken in sorted order so that two holders asking for
        overlapping sets can never deadlock. If any lock times out, the ones
        already taken are released before ``LockTimeout`` is raised.
        """
        ordered = sorted(set(keys))
        held: list[threading.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                if not lock.acquire(timeout=-1 if timeout is None else timeout):
                    logger.warning("lock_timeout", key=key, timeout=timeout)
                    raise LockTimeout(key, timeout)
                held.append(lock)
            yield ordered
        finally:
            for lock in reversed(held):
                lock.release()


def cart_key(customer_id: str) -> str:
    return f"cart:{customer_id}"


def sku_key(sku: str) -> str:
    return f"sku:{sku}"


# Shared by every ledger, cart store and orchestrator in the process.
checkout_locks = KeyedLocks()
