"""Tests for the CartStore used by checkout."""

import threading

import pytest
from storefront.cart.store import CartStore
from storefront.utils.locks import KeyedLocks, LockTimeout, cart_key


class TestGetCart:
    def test_missing_cart_is_none(self):
        assert CartStore().get_cart("nobody") is None

    def test_returns_committed_lines(self, fill_cart):
        fill_cart("cust-001", ("SKU-1", "Beans", 10.00, 2))
        cart = CartStore().get_cart("cust-001")
        assert cart.lines[0].sku == "SKU-1"


class TestClearLines:
    def test_clear_is_buffered_until_add(self, fill_cart):
        fill_cart("cust-001", ("SKU-1", "Beans", 10.00, 2), ("SKU-2", "Grinder", 5.00, 1))
        store = CartStore()
        cart = store.get_cart("cust-001")

        assert store.clear_lines(cart) == 2
        assert len(store.get_cart("cust-001").lines) == 2

        store.add(cart)
        assert store.get_cart("cust-001").is_empty


class TestEditing:
    def test_editing_waits_for_cart_lock(self):
        locks = KeyedLocks()
        store = CartStore(locks=locks, lock_timeout=0.1)
        release = threading.Event()
        held = threading.Event()

        def _holder():
            with locks.hold([cart_key("cust-001")]):
                held.set()
                release.wait(2)

        thread = threading.Thread(target=_holder)
        thread.start()
        held.wait(2)
        try:
            with pytest.raises(LockTimeout):
                with store.editing("cust-001"):
                    pass
        finally:
            release.set()
            thread.join()

    def test_editing_other_cart_is_not_blocked(self):
        locks = KeyedLocks()
        store = CartStore(locks=locks, lock_timeout=0.1)
        with locks.hold([cart_key("cust-001")]):
            with store.editing("cust-002"):
                pass
