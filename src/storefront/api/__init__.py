"""Storefront API package."""

from storefront.api.routes import cart_router, checkout_router, inventory_router, order_router, payment_router

__all__ = ["checkout_router", "cart_router", "order_router", "inventory_router", "payment_router"]
