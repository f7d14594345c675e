"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class CheckoutState:
    """Tracks state for a browse → cart → checkout → return lifecycle."""

    headers: dict = field(default_factory=dict)
    product_ids: list[str] = field(default_factory=list)
    order_id: str | None = None
    returned_product_id: str | None = None


@dataclass
class DeliveryState:
    """Tracks state for one order's trip through the delivery network."""

    city: str | None = None
    station_ids: dict[str, str] = field(default_factory=dict)
    agent_id: str | None = None
    product_id: str | None = None
    order_id: str | None = None
    current_status: str = "order_placed"
