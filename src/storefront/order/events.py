"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A checkout produced an order, paid or with a declined payment."""

    __version__ = "v1"

    order_id = Integer(required=True)
    customer_id = String(required=True)
    status = String(required=True)
    total = Float(required=True)
    currency = String(required=True)
    line_count = Integer(required=True)
    placed_at = DateTime(required=True)
