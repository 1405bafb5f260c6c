"""Storefront bounded context — carts, inventory, orders and checkout.

A single domain holds every aggregate the checkout touches so that the
inventory decrements, the new order and the emptied cart can be committed
together in one unit of work.
"""

from protean.domain import Domain

storefront = Domain(name="storefront")
