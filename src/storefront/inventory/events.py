"""Domain events for the InventoryItem aggregate."""

from protean.fields import Integer, String

from storefront.domain import storefront


@storefront.event(part_of="InventoryItem")
class StockReceived:
    """Goods were received and added to available stock."""

    __version__ = "v1"

    sku = String(required=True)
    quantity = Integer(required=True)
    previous_available = Integer(required=True)
    new_available = Integer(required=True)


@storefront.event(part_of="InventoryItem")
class StockReserved:
    """Units were taken out of available stock for a checkout."""

    __version__ = "v1"

    sku = String(required=True)
    quantity = Integer(required=True)
    previous_available = Integer(required=True)
    new_available = Integer(required=True)


@storefront.event(part_of="InventoryItem")
class StockReleased:
    __version__ = "v1"

    sku = String(required=True)
    quantity = Integer(required=True)
    previous_available = Integer(required=True)
    new_available = Integer(required=True)
