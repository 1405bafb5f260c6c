from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from storefront.checkout.errors import CheckoutError
from storefront.order.order import Order


@dataclass(frozen=True)
class OrderSummary:
    order_id: int
    status: str
    total: Decimal
    created_utc: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderSummary":
        return cls(
            order_id=order.id,
            status=order.status,
            total=order.total_amount,
            created_utc=order.created_at,
        )


@dataclass(frozen=True)
class CheckoutResult:
    """Either the summary of the committed order or the error that stopped the checkout."""

    order: OrderSummary | None = None
    error: CheckoutError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
