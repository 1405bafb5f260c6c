"""Order aggregate — the immutable record of a checkout.

An order is written once, in the same unit of work that decrements stock and
empties the cart, and is never updated afterwards. A declined payment still
produces an order, with status Failed.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Integer, String

from storefront.domain import storefront
from storefront.order.events import OrderPlaced

TWO_PLACES = Decimal("0.01")


def to_money(value) -> Decimal:
    """Round to two decimal places, half up."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class OrderStatus(Enum):
    PAID = "Paid"
    FAILED = "Failed"


@storefront.entity(part_of="Order")
class OrderLine:
    sku = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


@storefront.aggregate
class Order:
    id = Integer(identifier=True)
    customer_id = String(required=True, max_length=255)
    status = String(required=True, choices=OrderStatus)
    total = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)
    payment_reference = String(max_length=255)
    payment_error = String(max_length=500)
    idempotency_key = String(max_length=255)
    created_at = DateTime(required=True)
    lines = HasMany(OrderLine)

    @classmethod
    def place(
        cls,
        order_id,
        customer_id,
        status,
        total,
        currency,
        lines,
        created_at,
        payment_reference=None,
        payment_error=None,
        idempotency_key=None,
    ):
        """Build a new order from a checkout's snapshot of the cart.

        ``lines`` is an iterable of ``(sku, name, unit_price, quantity)``.
        """
        lines = list(lines)
        if not lines:
            raise ValidationError({"lines": ["An order needs at least one line"]})

        order = cls(
            id=order_id,
            customer_id=customer_id,
            status=OrderStatus(status).value,
            total=float(to_money(total)),
            currency=currency,
            payment_reference=payment_reference,
            payment_error=payment_error,
            idempotency_key=idempotency_key,
            created_at=created_at,
            lines=[
                OrderLine(sku=sku, name=name, unit_price=float(unit_price), quantity=quantity)
                for sku, name, unit_price, quantity in lines
            ],
        )

        order.raise_(
            OrderPlaced(
                order_id=order_id,
                customer_id=customer_id,
                status=order.status,
                total=order.total,
                currency=currency,
                line_count=len(lines),
                placed_at=created_at,
            )
        )
        return order

    @property
    def total_amount(self) -> Decimal:
        return to_money(self.total)

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID.value
