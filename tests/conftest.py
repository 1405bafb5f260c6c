import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before any test module imports the domain."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def _storefront_domain():
    """Initialize the storefront domain once per session."""
    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain
    from storefront.checkout.reconciliation import charge_keys
    from storefront.order.store import reset_order_sequence
    from storefront.payments.gateway import reset_gateway

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    reset_order_sequence()
    reset_gateway()
    charge_keys.reset()
    ctx.pop()


@pytest.fixture()
def gateway():
    """A FakeGateway installed as the active payment gateway."""
    from storefront.payments.gateway import set_gateway
    from storefront.payments.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def settings():
    """Checkout settings with short timeouts so failure paths finish quickly."""
    from storefront.config import CheckoutSettings

    return CheckoutSettings(currency="GBP", payment_timeout=0.5, commit_timeout=2.0, lock_timeout=3.0)


@pytest.fixture()
def stock():
    """Set the available quantity of a SKU."""
    from protean import current_domain
    from protean.exceptions import ObjectNotFoundError
    from storefront.inventory.stock import InventoryItem

    def _stock(sku, quantity):
        repo = current_domain.repository_for(InventoryItem)
        try:
            item = repo.get(sku)
            item.quantity = quantity
        except ObjectNotFoundError:
            item = InventoryItem.create(sku, quantity)
        repo.add(item)

    return _stock


@pytest.fixture()
def fill_cart():
    """Add ``(sku, name, unit_price, quantity)`` lines to a customer's cart."""
    from protean import current_domain
    from storefront.cart.items import AddToCart

    def _fill(customer_id, *lines):
        for sku, name, unit_price, quantity in lines:
            current_domain.process(
                AddToCart(customer_id=customer_id, sku=sku, name=name, unit_price=unit_price, quantity=quantity),
                asynchronous=False,
            )

    return _fill
