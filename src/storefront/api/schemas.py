"""Pydantic request/response schemas for the Storefront API.

These are external contracts, kept separate from the Protean commands and
aggregates they are translated into.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    customer_id: str | None = None
    payment_token: str | None = None
    idempotency_key: str | None = Field(default=None, max_length=255)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "payment_token": "tok_visa",
                    "idempotency_key": None,
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    order_id: int
    status: str
    total: Decimal
    created_utc: datetime


class ErrorDetail(BaseModel):
    kind: str
    message: str
    sku: str | None = None
    idempotency_key: str | None = None
    payment_reference: str | None = None
    refunded: bool | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------
class AddCartLineRequest(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "sku": "SKU-1",
                    "name": "Espresso beans 1kg",
                    "unit_price": "10.00",
                    "quantity": 2,
                }
            ]
        }
    }


class CartLineResponse(BaseModel):
    sku: str
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class CartResponse(BaseModel):
    customer_id: str
    lines: list[CartLineResponse]
    subtotal: Decimal


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineResponse(BaseModel):
    sku: str
    name: str
    unit_price: Decimal
    quantity: int


class OrderResponse(BaseModel):
    order_id: int
    customer_id: str
    status: str
    total: Decimal
    currency: str
    payment_reference: str | None = None
    payment_error: str | None = None
    created_utc: datetime
    lines: list[OrderLineResponse]


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
class ReceiveStockRequest(BaseModel):
    quantity: int = Field(ge=1)


class StockLevelResponse(BaseModel):
    sku: str
    available: int


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    unavailable: bool = False
    latency: float = Field(ge=0, default=0.0)
    refunds_succeed: bool = True


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    unavailable: bool
    latency: float
    refunds_succeed: bool


class StatusResponse(BaseModel):
    status: str = "ok"
