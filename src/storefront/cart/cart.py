"""Cart aggregate — the customer's pending lines before checkout.

A cart is keyed by customer id and is never deleted. Checkout empties it.
Each line carries a price snapshot taken when the SKU was first added, so
later catalogue price changes never alter what the customer is charged.
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String

from storefront.cart.events import CartCleared, CartLineAdded, CartLineRemoved
from storefront.domain import storefront


@storefront.entity(part_of="Cart")
class CartLine:
    sku = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    @property
    def line_total(self) -> Decimal:
        return Decimal(str(self.unit_price)) * self.quantity


@storefront.aggregate
class Cart:
    customer_id = String(identifier=True, required=True, max_length=255)
    lines = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        if not customer_id or not str(customer_id).strip():
            raise ValidationError({"customer_id": ["Customer id is required"]})

        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def line_for(self, sku):
        return next((line for line in self.lines if line.sku == sku), None)

    def add_line(self, sku, name, unit_price, quantity):
        """Add a SKU to the cart, or increase the quantity of its existing line.

        The first price seen for a SKU is kept; adding more of it later does
        not re-price the line.
        """
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if unit_price is None or unit_price < 0:
            raise ValidationError({"unit_price": ["Unit price cannot be negative"]})

        now = datetime.now(UTC)
        existing = self.line_for(sku)

        if existing:
            existing.quantity += quantity
            new_quantity = existing.quantity
        else:
            self.add_lines(
                CartLine(
                    sku=sku,
                    name=name,
                    unit_price=unit_price,
                    quantity=quantity,
                    added_at=now,
                )
            )
            new_quantity = quantity

        self.updated_at = now

        self.raise_(
            CartLineAdded(
                customer_id=self.customer_id,
                sku=sku,
                quantity_added=quantity,
                line_quantity=new_quantity,
            )
        )

    def remove_line(self, sku):
        line = self.line_for(sku)
        if line is None:
            raise ValidationError({"sku": [f"SKU {sku} is not in the cart"]})

        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartLineRemoved(customer_id=self.customer_id, sku=sku))

    def clear(self) -> int:
        """Remove every line. Returns how many lines were dropped."""
        lines = list(self.lines)
        for line in lines:
            self.remove_lines(line)

        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(customer_id=self.customer_id, lines_removed=len(lines)))
        return len(lines)
