"""Storefront domain: catalogue stock, orders, delivery journeys and returns.

A single Protean domain hosts every aggregate because order placement,
agent assignment and return approval each touch more than one aggregate
inside one unit of work. Aggregates are persisted with optimistic
versioning, so concurrent writers to the same order or product fail loudly
instead of interleaving.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")
