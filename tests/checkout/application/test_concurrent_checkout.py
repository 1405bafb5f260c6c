"""Concurrent checkouts racing for the same stock or the same cart."""

import threading

import pytest
from storefront.cart.store import CartStore
from storefront.checkout.errors import CartEmptyError, InsufficientStockError
from storefront.checkout.orchestrator import CheckoutOrchestrator
from storefront.config import CheckoutSettings
from storefront.domain import storefront
from storefront.inventory.ledger import InventoryLedger
from storefront.order.store import OrderStore

pytestmark = pytest.mark.concurrency


def _race(orchestrator, requests):
    """Start every ``(customer_id, token)`` checkout at the same moment and collect the results."""
    barrier = threading.Barrier(len(requests))
    results = [None] * len(requests)

    def _run(index, customer_id, token):
        with storefront.domain_context():
            barrier.wait(5)
            results[index] = orchestrator.checkout(customer_id, token)

    threads = [
        threading.Thread(target=_run, args=(index, customer_id, token))
        for index, (customer_id, token) in enumerate(requests)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(30)

    return results


class TestHotSku:
    def test_two_shoppers_for_all_units_one_wins(self, gateway, settings, stock, fill_cart):
        stock("SKU-HOT", 4)
        fill_cart("alice", ("SKU-HOT", "Mug", 12.50, 4))
        fill_cart("bob", ("SKU-HOT", "Mug", 12.50, 4))
        orchestrator = CheckoutOrchestrator(gateway=gateway, settings=settings)

        results = _race(orchestrator, [("alice", "tok_a"), ("bob", "tok_b")])

        winners = [r for r in results if r.succeeded]
        losers = [r for r in results if not r.succeeded]
        assert len(winners) == 1
        assert len(losers) == 1
        assert isinstance(losers[0].error, InsufficientStockError)
        assert losers[0].error.sku == "SKU-HOT"
        assert InventoryLedger().available("SKU-HOT") == 0
        assert len(gateway.calls_to("create_charge")) == 1

    def test_many_shoppers_never_oversell(self, gateway, settings, stock, fill_cart):
        stock("SKU-HOT", 5)
        shoppers = [f"shopper-{i}" for i in range(8)]
        for shopper in shoppers:
            fill_cart(shopper, ("SKU-HOT", "Mug", 12.50, 1))
        orchestrator = CheckoutOrchestrator(gateway=gateway, settings=settings)

        results = _race(orchestrator, [(shopper, "tok") for shopper in shoppers])

        assert sum(1 for r in results if r.succeeded) == 5
        assert all(isinstance(r.error, InsufficientStockError) for r in results if not r.succeeded)
        assert InventoryLedger().available("SKU-HOT") == 0

    def test_slow_gateway_does_not_starve_the_next_shopper(self, gateway, stock, fill_cart):
        stock("SKU-HOT", 10)
        fill_cart("alice", ("SKU-HOT", "Mug", 12.50, 1))
        fill_cart("bob", ("SKU-HOT", "Mug", 12.50, 1))
        gateway.configure(latency=0.6)
        settings = CheckoutSettings(payment_timeout=1.0, commit_timeout=0.5, lock_timeout=1.5)
        settings.check_lock_timeout()
        orchestrator = CheckoutOrchestrator(gateway=gateway, settings=settings)

        results = _race(orchestrator, [("alice", "tok_a"), ("bob", "tok_b")])

        assert [r.order.status for r in results] == ["Paid", "Paid"]
        assert InventoryLedger().available("SKU-HOT") == 8

    def test_overlapping_carts_in_opposite_order(self, gateway, settings, stock, fill_cart):
        stock("SKU-A", 10)
        stock("SKU-B", 10)
        fill_cart("alice", ("SKU-A", "A", 1.00, 1), ("SKU-B", "B", 1.00, 1))
        fill_cart("bob", ("SKU-B", "B", 1.00, 1), ("SKU-A", "A", 1.00, 1))
        orchestrator = CheckoutOrchestrator(gateway=gateway, settings=settings)

        results = _race(orchestrator, [("alice", "tok_a"), ("bob", "tok_b")])

        assert all(r.succeeded for r in results)
        assert InventoryLedger().available("SKU-A") == 8
        assert InventoryLedger().available("SKU-B") == 8


class TestDoubleSubmit:
    def test_same_cart_is_charged_once(self, gateway, settings, stock, fill_cart):
        stock("SKU-1", 10)
        fill_cart("cust-001", ("SKU-1", "Beans", 10.00, 2))
        orchestrator = CheckoutOrchestrator(gateway=gateway, settings=settings)

        results = _race(orchestrator, [("cust-001", "tok"), ("cust-001", "tok")])

        assert sum(1 for r in results if r.succeeded) == 1
        assert any(isinstance(r.error, CartEmptyError) for r in results)
        assert len(gateway.calls_to("create_charge")) == 1
        assert len(OrderStore().list_for_customer("cust-001")) == 1
        assert InventoryLedger().available("SKU-1") == 8
        assert CartStore().get_cart("cust-001").is_empty
