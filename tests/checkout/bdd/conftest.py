"""Shared BDD fixtures and step definitions for checkout."""

from decimal import Decimal

import pytest
from pytest_bdd import given, parsers, then
from storefront.cart.store import CartStore
from storefront.inventory.ledger import InventoryLedger
from storefront.order.store import OrderStore


@pytest.fixture()
def result():
    """Replaced by the When step that runs the checkout."""
    return None


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('"{sku}" has {quantity:d} units in stock'))
def _(stock, sku, quantity):
    stock(sku, quantity)


@given(parsers.cfparse('customer "{customer_id}" has {quantity:d} of "{sku}" at {unit_price:f} in the cart'))
def _(fill_cart, customer_id, quantity, sku, unit_price):
    fill_cart(customer_id, (sku, f"Product {sku}", unit_price, quantity))


@given(parsers.cfparse('the payment gateway declines charges with "{reason}"'))
def _(gateway, reason):
    gateway.configure(should_succeed=False, failure_reason=reason)


@given("the payment gateway is unavailable")
def _(gateway):
    gateway.configure(unavailable=True)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the checkout succeeds with a "{status}" order totalling {total}'))
def _(result, status, total):
    assert result.succeeded, result.error
    assert result.order.status == status
    assert result.order.total == Decimal(total)


@then(parsers.cfparse('the checkout fails with "{kind}"'))
def _(result, kind):
    assert not result.succeeded
    assert result.error.kind.value == kind


@then(parsers.cfparse('"{sku}" has {quantity:d} units available'))
def _(sku, quantity):
    assert InventoryLedger().available(sku) == quantity


@then(parsers.cfparse('the cart of "{customer_id}" is empty'))
def _(customer_id):
    assert CartStore().get_cart(customer_id).is_empty


@then(parsers.cfparse('the cart of "{customer_id}" has {count:d} lines'))
def _(customer_id, count):
    assert len(CartStore().get_cart(customer_id).lines) == count


@then(parsers.cfparse('customer "{customer_id}" has no orders'))
def _(customer_id):
    assert OrderStore().list_for_customer(customer_id) == []


@then("the payment gateway was not called")
def _(gateway):
    assert gateway.calls_to("create_charge") == []
