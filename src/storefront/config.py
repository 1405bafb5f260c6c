"""Checkout settings read from the ``[custom]`` table of ``domain.toml``."""

import os
from dataclasses import dataclass

from protean.domain import Domain


@dataclass(frozen=True)
class CheckoutSettings:
    currency: str = "GBP"
    payment_gateway: str = "fake"
    payment_gateway_url: str | None = None
    payment_gateway_api_key: str | None = None
    payment_timeout: float = 5.0
    commit_timeout: float = 5.0
    lock_timeout: float = 15.0

    @classmethod
    def from_domain(cls, domain: Domain) -> "CheckoutSettings":
        """Build settings from the domain's custom config.

        ``PAYMENT_GATEWAY_URL`` and ``PAYMENT_GATEWAY_API_KEY`` take precedence
        over the file so that credentials stay out of version control.
        """
        custom = domain.config.get("custom", {}) or {}
        settings = cls(
            currency=custom.get("currency", cls.currency),
            payment_gateway=custom.get("payment_gateway", cls.payment_gateway),
            payment_gateway_url=os.getenv("PAYMENT_GATEWAY_URL", custom.get("payment_gateway_url")),
            payment_gateway_api_key=os.getenv("PAYMENT_GATEWAY_API_KEY"),
            payment_timeout=float(custom.get("payment_timeout_seconds", cls.payment_timeout)),
            commit_timeout=float(custom.get("commit_timeout_seconds", cls.commit_timeout)),
            lock_timeout=float(custom.get("lock_timeout_seconds", cls.lock_timeout)),
        )
        settings.check_lock_timeout()
        return settings

    def check_lock_timeout(self) -> None:
        """A checkout holds its SKU locks through the payment call and the commit.

        A shorter lock timeout turns a slow but healthy gateway into "inventory
        is busy" failures for every other shopper of the same SKU.
        """
        if self.lock_timeout < self.payment_timeout + self.commit_timeout:
            raise ValueError(
                f"lock_timeout_seconds ({self.lock_timeout}) must be at least payment_timeout_seconds "
                f"+ commit_timeout_seconds ({self.payment_timeout + self.commit_timeout})"
            )
