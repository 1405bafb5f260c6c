"""InventoryItem aggregate — available quantity of a single SKU.

Quantity is what can still be sold. Checkout decrements it; receiving goods
increments it. It can never go below zero.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Integer, String

from storefront.domain import storefront
from storefront.inventory.events import StockReceived, StockReleased, StockReserved


@storefront.aggregate
class InventoryItem:
    sku = String(identifier=True, required=True, max_length=64)
    quantity = Integer(required=True, default=0, min_value=0)
    updated_at = DateTime()

    @invariant.post
    def quantity_cannot_be_negative(self):
        if self.quantity is not None and self.quantity < 0:
            raise ValidationError({"quantity": [f"Stock for {self.sku} cannot go below zero"]})

    @classmethod
    def create(cls, sku, quantity=0):
        return cls(sku=sku, quantity=quantity, updated_at=datetime.now(UTC))

    def can_supply(self, quantity) -> bool:
        return self.quantity >= quantity

    def reserve(self, quantity):
        """Take ``quantity`` units out of available stock."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.can_supply(quantity):
            raise ValidationError(
                {"quantity": [f"Insufficient stock: {self.quantity} available, {quantity} requested"]}
            )

        previous = self.quantity
        self.quantity = previous - quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReserved(
                sku=self.sku,
                quantity=quantity,
                previous_available=previous,
                new_available=self.quantity,
            )
        )

    def release(self, quantity):
        """Put back units taken by ``reserve``."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        previous = self.quantity
        self.quantity = previous + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReleased(
                sku=self.sku,
                quantity=quantity,
                previous_available=previous,
                new_available=self.quantity,
            )
        )

    def receive(self, quantity):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Received quantity must be positive"]})

        previous = self.quantity
        self.quantity = previous + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReceived(
                sku=self.sku,
                quantity=quantity,
                previous_available=previous,
                new_available=self.quantity,
            )
        )
