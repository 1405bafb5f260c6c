"""Application tests for cart line commands."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.cart.cart import Cart
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart


def _add(customer_id="cust-001", sku="SKU-1", name="Beans", unit_price=10.00, quantity=1):
    current_domain.process(
        AddToCart(customer_id=customer_id, sku=sku, name=name, unit_price=unit_price, quantity=quantity),
        asynchronous=False,
    )


class TestAddToCartCommand:
    def test_first_line_creates_cart(self):
        _add(quantity=2)
        cart = current_domain.repository_for(Cart).get("cust-001")
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    def test_add_multiple_lines(self):
        _add(sku="SKU-1")
        _add(sku="SKU-2", name="Grinder", unit_price=5.00, quantity=3)
        cart = current_domain.repository_for(Cart).get("cust-001")
        assert len(cart.lines) == 2

    def test_repeat_sku_accumulates(self):
        _add(quantity=1)
        _add(quantity=4)
        cart = current_domain.repository_for(Cart).get("cust-001")
        assert cart.lines[0].quantity == 5

    def test_carts_are_per_customer(self):
        _add(customer_id="cust-001")
        _add(customer_id="cust-002", sku="SKU-2")
        assert current_domain.repository_for(Cart).get("cust-001").lines[0].sku == "SKU-1"
        assert current_domain.repository_for(Cart).get("cust-002").lines[0].sku == "SKU-2"


class TestRemoveFromCartCommand:
    def test_remove_persists(self):
        _add(sku="SKU-1")
        _add(sku="SKU-2")
        current_domain.process(RemoveFromCart(customer_id="cust-001", sku="SKU-1"), asynchronous=False)
        cart = current_domain.repository_for(Cart).get("cust-001")
        assert [line.sku for line in cart.lines] == ["SKU-2"]

    def test_remove_unknown_sku_fails(self):
        _add(sku="SKU-1")
        with pytest.raises(ValidationError):
            current_domain.process(RemoveFromCart(customer_id="cust-001", sku="SKU-9"), asynchronous=False)


class TestClearCartCommand:
    def test_clear_keeps_the_cart(self):
        _add(sku="SKU-1")
        current_domain.process(ClearCart(customer_id="cust-001"), asynchronous=False)
        cart = current_domain.repository_for(Cart).get("cust-001")
        assert cart.is_empty

    def test_clear_missing_cart_fails(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(ClearCart(customer_id="nobody"), asynchronous=False)
