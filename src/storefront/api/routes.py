"""FastAPI routes for the Storefront — checkout, carts, orders, inventory."""

import os

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddCartLineRequest,
    CartLineResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ConfigureGatewayRequest,
    ErrorResponse,
    GatewayConfigResponse,
    OrderLineResponse,
    OrderResponse,
    ReceiveStockRequest,
    StatusResponse,
    StockLevelResponse,
)
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart
from storefront.cart.store import CartStore
from storefront.checkout.errors import PersistenceError
from storefront.checkout.orchestrator import CheckoutOrchestrator
from storefront.config import CheckoutSettings
from storefront.domain import storefront
from storefront.inventory.ledger import InventoryLedger
from storefront.order.order import Order
from storefront.order.store import OrderStore
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.utils.db import CommitTimeout
from storefront.utils.locks import LockTimeout

logger = structlog.get_logger(__name__)


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.id,
        customer_id=order.customer_id,
        status=order.status,
        total=order.total_amount,
        currency=order.currency,
        payment_reference=order.payment_reference,
        payment_error=order.payment_error,
        created_utc=order.created_at,
        lines=[
            OrderLineResponse(sku=line.sku, name=line.name, unit_price=line.unit_price, quantity=line.quantity)
            for line in order.lines
        ],
    )


def _settings() -> CheckoutSettings:
    return CheckoutSettings.from_domain(current_domain)


def _cart_store() -> CartStore:
    return CartStore(lock_timeout=_settings().lock_timeout)


_BUSY = {503: {"model": ErrorResponse}}


def _busy_response(exc: Exception) -> JSONResponse:
    error = PersistenceError("storage is busy, please retry")
    logger.warning("storefront_busy", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(status_code=error.status_code, content={"error": error.to_dict()})


def _edit_cart(customer_id, command, response: StatusResponse):
    """Run a cart command serialized against checkouts of the same cart.

    Routes that wait on the cart or SKU locks are declared without ``async``
    so the wait happens in the threadpool, never on the event loop.
    """
    with storefront.domain_context():
        try:
            with _cart_store().editing(customer_id):
                current_domain.process(command, asynchronous=False)
        except (LockTimeout, CommitTimeout) as exc:
            return _busy_response(exc)
    return response


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post(
    "",
    status_code=201,
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def checkout(body: CheckoutRequest):
    """Turn the customer's cart into an order.

    Declared without ``async`` so the blocking payment call runs in the
    threadpool; the domain context is pushed here for that thread.
    """
    with storefront.domain_context():
        result = CheckoutOrchestrator().checkout(
            customer_id=body.customer_id,
            payment_token=body.payment_token,
            idempotency_key=body.idempotency_key,
        )

    if not result.succeeded:
        return JSONResponse(status_code=result.error.status_code, content={"error": result.error.to_dict()})

    return CheckoutResponse(
        order_id=result.order.order_id,
        status=result.order.status,
        total=result.order.total,
        created_utc=result.order.created_utc,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/{customer_id}", response_model=CartResponse, responses=_BUSY)
def get_cart(customer_id: str):
    with storefront.domain_context():
        try:
            cart = _cart_store().get_cart(customer_id)
        except CommitTimeout as exc:
            return _busy_response(exc)
    if cart is None:
        return CartResponse(customer_id=customer_id, lines=[], subtotal=0)

    return CartResponse(
        customer_id=cart.customer_id,
        lines=[
            CartLineResponse(
                sku=line.sku,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=line.line_total,
            )
            for line in cart.lines
        ],
        subtotal=cart.subtotal,
    )


@cart_router.post("/{customer_id}/lines", response_model=StatusResponse, responses=_BUSY)
def add_cart_line(customer_id: str, body: AddCartLineRequest):
    command = AddToCart(
        customer_id=customer_id,
        sku=body.sku,
        name=body.name,
        unit_price=float(body.unit_price),
        quantity=body.quantity,
    )
    return _edit_cart(customer_id, command, StatusResponse())


@cart_router.delete("/{customer_id}/lines/{sku}", response_model=StatusResponse, responses=_BUSY)
def remove_cart_line(customer_id: str, sku: str):
    command = RemoveFromCart(customer_id=customer_id, sku=sku)
    return _edit_cart(customer_id, command, StatusResponse(status="removed"))


@cart_router.delete("/{customer_id}", response_model=StatusResponse, responses=_BUSY)
def clear_cart(customer_id: str):
    command = ClearCart(customer_id=customer_id)
    return _edit_cart(customer_id, command, StatusResponse(status="cleared"))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(customer_id: str) -> list[OrderResponse]:
    """Orders placed by a customer, newest first."""
    return [_order_response(order) for order in OrderStore().list_for_customer(customer_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int) -> OrderResponse:
    try:
        order = OrderStore().get(order_id)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return _order_response(order)


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.put("/{sku}/receive", response_model=StockLevelResponse, responses=_BUSY)
def receive_stock(sku: str, body: ReceiveStockRequest):
    with storefront.domain_context():
        try:
            item = InventoryLedger(lock_timeout=_settings().lock_timeout).receive(sku, body.quantity)
        except (LockTimeout, CommitTimeout) as exc:
            return _busy_response(exc)
    return StockLevelResponse(sku=item.sku, available=item.quantity)


@inventory_router.get("/{sku}", response_model=StockLevelResponse)
async def get_stock(sku: str) -> StockLevelResponse:
    return StockLevelResponse(sku=sku, available=InventoryLedger().available(sku))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    Lets manual and load tests force declines, outages and slow answers.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        unavailable=body.unavailable,
        latency=body.latency,
        refunds_succeed=body.refunds_succeed,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        unavailable=gateway.unavailable,
        latency=gateway.latency,
        refunds_succeed=gateway.refunds_succeed,
    )
