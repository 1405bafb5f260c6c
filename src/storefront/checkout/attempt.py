"""CheckoutAttempt — the state of one in-flight checkout.

State machine:
    VALIDATING → CART_LOADED → RESERVING → CHARGING → PAID | FAILED →
    COMMITTING → COMMITTED
    Any non-terminal state → ABORTED

An attempt lives for one call. There is no resumable partial state: an
aborted attempt is discarded and the customer checks out again.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import uuid4

import structlog

from storefront.payments.gateway.port import ChargeResult

logger = structlog.get_logger(__name__)


class AttemptState(Enum):
    VALIDATING = "Validating"
    CART_LOADED = "CartLoaded"
    RESERVING = "Reserving"
    CHARGING = "Charging"
    PAID = "Paid"
    FAILED = "Failed"
    COMMITTING = "Committing"
    COMMITTED = "Committed"
    ABORTED = "Aborted"


_TERMINAL_STATES = {AttemptState.COMMITTED, AttemptState.ABORTED}

_VALID_TRANSITIONS = {
    AttemptState.VALIDATING: {AttemptState.CART_LOADED},
    AttemptState.CART_LOADED: {AttemptState.RESERVING},
    AttemptState.RESERVING: {AttemptState.CHARGING},
    AttemptState.CHARGING: {AttemptState.PAID, AttemptState.FAILED},
    AttemptState.PAID: {AttemptState.COMMITTING},
    AttemptState.FAILED: {AttemptState.COMMITTING},
    AttemptState.COMMITTING: {AttemptState.COMMITTED},
    AttemptState.COMMITTED: set(),
    AttemptState.ABORTED: set(),
}


class InvalidTransition(Exception):
    pass


@dataclass
class CheckoutAttempt:
    customer_id: str
    payment_token: str
    idempotency_key: str = field(default_factory=lambda: uuid4().hex)
    state: AttemptState = AttemptState.VALIDATING
    total: Decimal | None = None
    charge: ChargeResult | None = None

    def advance(self, new_state: AttemptState) -> None:
        allowed = set(_VALID_TRANSITIONS[self.state])
        if self.state not in _TERMINAL_STATES:
            allowed.add(AttemptState.ABORTED)

        if new_state not in allowed:
            raise InvalidTransition(f"Cannot move a checkout from {self.state.value} to {new_state.value}")

        logger.debug("checkout_state_changed", from_state=self.state.value, to_state=new_state.value)
        self.state = new_state

    def abort(self) -> None:
        if self.state not in _TERMINAL_STATES:
            self.advance(AttemptState.ABORTED)

    @property
    def is_finished(self) -> bool:
        return self.state in _TERMINAL_STATES

    @property
    def payment_captured(self) -> bool:
        """True once money has been taken for this attempt."""
        return self.charge is not None and self.charge.success
