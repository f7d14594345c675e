"""Order domain events: immutable facts about an order's life.

All events are past tense and versioned. List-shaped payloads (items,
journey) travel as JSON text.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order and its stock was reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of item dicts
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    description = String()
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class JourneyPlanned:
    """A delivery journey was laid out across the station network."""

    __version__ = 1

    order_id = Identifier(required=True)
    fulfillment_center_id = Identifier(required=True)
    regional_hub_id = Identifier()
    local_station_id = Identifier(required=True)
    stages = Text(required=True)  # JSON list of stage names
    estimated_delivery = DateTime(required=True)
    planned_at = DateTime(required=True)


@storefront.event(part_of="Order")
class StageAdvanced:
    __version__ = 1

    order_id = Identifier(required=True)
    completed_stage = String(required=True)
    current_stage = String(required=True)
    current_stage_index = Integer(required=True)
    advanced_at = DateTime(required=True)


@storefront.event(part_of="Order")
class AgentAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    agent_name = String(required=True)
    assigned_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPickedUp:
    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    picked_up_at = DateTime(required=True)


@storefront.event(part_of="Order")
class DeliveryStarted:
    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    started_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    delivery_proof = String()
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ReturnRequested:
    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    requested_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ReturnApproved:
    """A return was approved; the item left the order and the total was reduced."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    refund_amount = Float(required=True)
    new_total = Float(required=True)
    approved_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ReturnRestocked:
    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    restocked_at = DateTime(required=True)
