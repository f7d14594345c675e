"""Delivery agent domain events."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="DeliveryAgent")
class AgentRegistered:
    __version__ = 1

    agent_id = Identifier(required=True)
    name = String(required=True)
    vehicle_type = String(required=True)
    assigned_station_id = Identifier()
    registered_at = DateTime(required=True)


@storefront.event(part_of="DeliveryAgent")
class AgentLocationReported:
    """An agent pushed a fresh position fix."""

    __version__ = 1

    agent_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)
    recorded_at = DateTime(required=True)


@storefront.event(part_of="DeliveryAgent")
class AgentDispatched:
    """An available agent took on an order and is now busy."""

    __version__ = 1

    agent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    dispatched_at = DateTime(required=True)


@storefront.event(part_of="DeliveryAgent")
class AgentReleased:
    """An agent let go of an order and is available again."""

    __version__ = 1

    agent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    delivered = Boolean(default=True)
    released_at = DateTime(required=True)


@storefront.event(part_of="DeliveryAgent")
class AgentAvailabilityChanged:
    __version__ = 1

    agent_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
