"""Storefront FastAPI application.

Processes commands synchronously via HTTP. Every request runs inside the
storefront domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.domain import storefront
from storefront.utils.logging import add_context, clear_context, configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level. PROTEAN_ENV selects the config overlay in
# domain.toml.
#
# Cart and SKU locks and the storage write lock live in this process, so
# the app must be served by a single worker process (uvicorn --workers 1).
# A second worker would oversell stock and could double-charge a cart.
configure_logging()
storefront.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Carts, inventory, orders and checkout",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and tag logs with the request."""
    add_context(http_method=request.method, http_path=request.url.path)
    try:
        with storefront.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import (  # noqa: E402
    cart_router,
    checkout_router,
    inventory_router,
    order_router,
    payment_router,
)

app.include_router(checkout_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(inventory_router)
app.include_router(payment_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})
