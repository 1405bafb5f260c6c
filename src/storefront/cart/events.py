"""Domain events for the Cart aggregate."""

from protean.fields import Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartLineAdded:
    """A SKU was added to the cart, or its line quantity was increased."""

    __version__ = "v1"

    customer_id = String(required=True)
    sku = String(required=True)
    quantity_added = Integer(required=True)
    line_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartLineRemoved:
    __version__ = "v1"

    customer_id = String(required=True)
    sku = String(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    """All lines were removed, either by the customer or by a checkout."""

    __version__ = "v1"

    customer_id = String(required=True)
    lines_removed = Integer(required=True)
