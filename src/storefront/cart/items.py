"""Cart line management — commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront


@storefront.command(part_of="Cart")
class AddToCart:
    customer_id = String(required=True, max_length=255)
    sku = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    customer_id = String(required=True, max_length=255)
    sku = String(required=True, max_length=64)


@storefront.command(part_of="Cart")
class ClearCart:
    customer_id = String(required=True, max_length=255)


@storefront.command_handler(part_of=Cart)
class ManageCartLinesHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        try:
            cart = repo.get(command.customer_id)
        except ObjectNotFoundError:
            # First line for this customer
            cart = Cart.create(command.customer_id)

        cart.add_line(
            sku=command.sku,
            name=command.name,
            unit_price=command.unit_price,
            quantity=command.quantity,
        )
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.customer_id)
        cart.remove_line(command.sku)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.customer_id)
        cart.clear()
        repo.add(cart)
