"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- HttpPaymentGateway when ``payment_gateway = "http"`` is configured
"""

from protean.utils.globals import current_domain

from storefront.config import CheckoutSettings
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.http_adapter import HttpPaymentGateway
from storefront.payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def build_gateway(settings: CheckoutSettings) -> PaymentGateway:
    if settings.payment_gateway == "http":
        if not settings.payment_gateway_url:
            raise ValueError("payment_gateway_url must be set to use the http payment gateway")
        return HttpPaymentGateway(settings.payment_gateway_url, api_key=settings.payment_gateway_api_key)
    if settings.payment_gateway == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown payment gateway {settings.payment_gateway!r}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from the domain config on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway(CheckoutSettings.from_domain(current_domain))
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
