"""Order aggregate (CQRS): items, totals, delivery journey, agent hand-off and returns.

The order owns everything that must change together: its line items and
total, the delivery journey and the status derived from it, the assigned
agent's details, return requests and an append-only status history. Stations
and agents are referenced by id only; they live in their own aggregates.

Status Machine:
    ORDER_PLACED → FULFILLMENT_PROCESSING                  (journey planned)
    FULFILLMENT_PROCESSING → {REGIONAL_TRANSIT, LOCAL_STATION, WAITING_FOR_AGENT,
                              OUT_FOR_DELIVERY, IN_TRANSIT}  (stage advanced)
    WAITING_FOR_AGENT → AGENT_ASSIGNED → PICKED_UP → ON_THE_WAY → DELIVERED
    any → {ORDER_PLACED, SHIPPED, OUT_FOR_DELIVERY, DELIVERED, CANCELLED}
                                                           (admin status update)

Invariants:
    total_amount == Σ line_total over items
    while a journey runs: stages before current_stage are completed, the
    current one is in progress, later ones are pending
    a product is in items XOR its return request is approved
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from storefront.domain import storefront
from storefront.errors import (
    AlreadyApproved,
    AlreadyFinal,
    AssignmentNotFound,
    DuplicateReturn,
    InvalidStatus,
    ItemNotFound,
    MissingCity,
    NotReady,
    ProductNotInOrder,
    ReturnNotFound,
)
from storefront.order.events import (
    AgentAssigned,
    DeliveryStarted,
    JourneyPlanned,
    OrderDelivered,
    OrderPickedUp,
    OrderPlaced,
    OrderStatusChanged,
    ReturnApproved,
    ReturnRequested,
    ReturnRestocked,
    StageAdvanced,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    # Coarse, customer-facing
    ORDER_PLACED = "order_placed"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    # Fine-grained, produced by the delivery journey
    FULFILLMENT_PROCESSING = "fulfillment_processing"
    REGIONAL_TRANSIT = "regional_transit"
    LOCAL_STATION = "local_station"
    WAITING_FOR_AGENT = "waiting_for_agent"
    AGENT_ASSIGNED = "agent_assigned"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    IN_TRANSIT = "in_transit"


class StageName(Enum):
    FULFILLMENT_PROCESSING = "fulfillment_processing"
    REGIONAL_TRANSIT = "regional_transit"
    LOCAL_STATION_ARRIVAL = "local_station_arrival"
    AGENT_ASSIGNMENT = "agent_assignment"
    OUT_FOR_DELIVERY = "out_for_delivery"


class StageStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ReturnStatus(Enum):
    REQUESTED = "requested"
    APPROVED = "approved"


COARSE_STATUSES = (
    OrderStatus.ORDER_PLACED,
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
)

_CUSTOMER_FACING = {
    OrderStatus.FULFILLMENT_PROCESSING: OrderStatus.ORDER_PLACED,
    OrderStatus.REGIONAL_TRANSIT: OrderStatus.SHIPPED,
    OrderStatus.LOCAL_STATION: OrderStatus.SHIPPED,
    OrderStatus.IN_TRANSIT: OrderStatus.SHIPPED,
    OrderStatus.WAITING_FOR_AGENT: OrderStatus.SHIPPED,
    OrderStatus.AGENT_ASSIGNED: OrderStatus.SHIPPED,
    OrderStatus.PICKED_UP: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.ON_THE_WAY: OrderStatus.OUT_FOR_DELIVERY,
}

_STATUS_FOR_STAGE = {
    StageName.REGIONAL_TRANSIT.value: OrderStatus.REGIONAL_TRANSIT,
    StageName.LOCAL_STATION_ARRIVAL.value: OrderStatus.LOCAL_STATION,
    StageName.AGENT_ASSIGNMENT.value: OrderStatus.WAITING_FOR_AGENT,
    StageName.OUT_FOR_DELIVERY.value: OrderStatus.OUT_FOR_DELIVERY,
}

_DEFAULT_DESCRIPTIONS = {
    OrderStatus.ORDER_PLACED: "Your order has been confirmed",
    OrderStatus.SHIPPED: "Your package is on its way",
    OrderStatus.OUT_FOR_DELIVERY: "Your package is out for delivery",
    OrderStatus.DELIVERED: "Your package has been delivered",
    OrderStatus.CANCELLED: "Order has been cancelled",
}

# Once an agent owns the order, the agent lifecycle drives status, not stage advancement
_AGENT_OWNED_STATUSES = {
    OrderStatus.AGENT_ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.ON_THE_WAY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
}

ACTIVE_DELIVERY_STATUSES = (
    OrderStatus.AGENT_ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.ON_THE_WAY,
)


def status_for_stage(stage_name: str) -> OrderStatus:
    """The order status a journey stage implies; unknown stages read as in transit."""
    return _STATUS_FOR_STAGE.get(stage_name, OrderStatus.IN_TRANSIT)


def customer_facing_status(status: str) -> str:
    """Collapse a fine-grained status onto the coarse customer-facing set."""
    current = OrderStatus(status)
    return _CUSTOMER_FACING.get(current, current).value


def order_number_for(order_id) -> str:
    return str(order_id)[-8:].upper()


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    full_name = String(required=True, max_length=200)
    address = String(required=True, max_length=500)
    city = String(max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@storefront.value_object(part_of="Order")
class AssignedStations:
    """Stations chosen when the journey was planned. Set once."""

    fulfillment_center_id = Identifier(required=True)
    regional_hub_id = Identifier()
    local_station_id = Identifier(required=True)


@storefront.value_object(part_of="Order")
class TrackingSnapshot:
    """Last computed agent position, distance and ETA. A display cache, not authoritative."""

    agent_latitude = Float()
    agent_longitude = Float()
    distance_remaining_km = Float()
    estimated_arrival = DateTime()
    last_update = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=500)
    line_total = Float(required=True, min_value=0.0)
    sequence = Integer(required=True, min_value=0)


@storefront.entity(part_of="Order")
class DeliveryStage:
    sequence = Integer(required=True, min_value=0)
    name = String(required=True, max_length=50, choices=StageName)
    location = String(max_length=200)
    address = String(max_length=500)
    status = String(max_length=20, choices=StageStatus, default=StageStatus.PENDING.value)
    estimated_time = DateTime()
    started_at = DateTime()
    completed_at = DateTime()
    description = String(max_length=500)


@storefront.entity(part_of="Order")
class ReturnRequest:
    product_id = Identifier(required=True)
    status = String(max_length=20, choices=ReturnStatus, default=ReturnStatus.REQUESTED.value)
    requested_at = DateTime(required=True)
    approved_at = DateTime()
    quantity = Integer()
    refund_amount = Float()
    restocked_at = DateTime()


@storefront.entity(part_of="Order")
class StatusChange:
    sequence = Integer(required=True, min_value=0)
    status = String(required=True, max_length=50)
    description = String(max_length=500)
    occurred_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    customer_id = Identifier(required=True)
    customer_name = String(max_length=200)
    customer_email = String(max_length=254)
    items = HasMany(OrderItem)
    total_amount = Float(default=0.0, min_value=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.ORDER_PLACED.value)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(max_length=50)

    # Delivery journey
    delivery_journey = HasMany(DeliveryStage)
    current_stage = Integer(min_value=0)
    assigned_stations = ValueObject(AssignedStations)

    # Agent hand-off
    agent_id = Identifier()
    agent_name = String(max_length=200)
    agent_phone = String(max_length=30)
    assigned_at = DateTime()
    picked_up_at = DateTime()
    on_the_way_at = DateTime()
    delivered_at = DateTime()
    delivery_proof = String(max_length=500)
    tracking = ValueObject(TrackingSnapshot)

    returns = HasMany(ReturnRequest)
    status_history = HasMany(StatusChange)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        lines: list[dict],
        shipping_address: dict,
        payment_method: str,
        customer_name: str | None = None,
        customer_email: str | None = None,
    ):
        """Create an order from priced lines.

        Each line carries ``product_id, name, price, quantity`` and optionally
        ``image``; prices must already be the catalogue's current prices.
        """
        cls.validate_placement(lines, shipping_address, payment_method)

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            customer_name=customer_name,
            customer_email=customer_email,
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            status=OrderStatus.ORDER_PLACED.value,
            created_at=now,
            updated_at=now,
        )
        for sequence, line in enumerate(lines):
            order.add_items(
                OrderItem(
                    product_id=line["product_id"],
                    name=line["name"],
                    price=line["price"],
                    quantity=line["quantity"],
                    image=line.get("image"),
                    line_total=round(line["price"] * line["quantity"], 2),
                    sequence=sequence,
                )
            )
        order._recalculate_total()
        order._append_history(
            OrderStatus.ORDER_PLACED.value,
            "Order placed successfully, processing at fulfillment center",
            now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(i.product_id),
                            "name": i.name,
                            "price": i.price,
                            "quantity": i.quantity,
                            "line_total": i.line_total,
                        }
                        for i in order.ordered_items
                    ]
                ),
                item_count=len(lines),
                total_amount=order.total_amount,
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    @staticmethod
    def validate_placement(lines: list, shipping_address: dict | None, payment_method: str | None) -> None:
        if not lines:
            raise ValidationError({"items": ["Cart is empty"]})
        if not shipping_address or not shipping_address.get("full_name") or not shipping_address.get("address"):
            raise ValidationError({"shipping_address": ["Shipping address is required"]})
        if not payment_method:
            raise ValidationError({"payment_method": ["Payment method is required"]})

    # -------------------------------------------------------------------
    # Ordered views over child collections
    # -------------------------------------------------------------------
    @property
    def order_number(self) -> str:
        return order_number_for(self.id)

    @property
    def ordered_items(self) -> list:
        return sorted(self.items or [], key=lambda i: i.sequence)

    @property
    def stages(self) -> list:
        return sorted(self.delivery_journey or [], key=lambda s: s.sequence)

    @property
    def history(self) -> list:
        return sorted(self.status_history or [], key=lambda h: h.sequence)

    @property
    def estimated_delivery(self) -> datetime | None:
        stages = self.stages
        return stages[-1].estimated_time if stages else None

    def return_for(self, product_id):
        return next((r for r in (self.returns or []) if str(r.product_id) == str(product_id)), None)

    def item_for(self, product_id):
        return next((i for i in (self.items or []) if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------
    def _recalculate_total(self) -> None:
        self.total_amount = round(sum(i.line_total for i in (self.items or [])), 2)

    def _append_history(self, status: str, description: str, now: datetime) -> None:
        self.add_status_history(
            StatusChange(
                sequence=len(self.status_history or []),
                status=status,
                description=description,
                occurred_at=now,
            )
        )

    def _change_status(self, target: OrderStatus, description: str, now: datetime) -> None:
        previous = self.status
        self.status = target.value
        self.updated_at = now
        self._append_history(target.value, description, now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                description=description,
                changed_at=now,
            )
        )

    def _move_to_stage(self, index: int, now: datetime) -> None:
        """Complete every stage before ``index`` and start the one at ``index``."""
        for stage in self.stages:
            if stage.sequence < index:
                if stage.status != StageStatus.COMPLETED.value:
                    stage.status = StageStatus.COMPLETED.value
                    stage.started_at = stage.started_at or now
                    stage.completed_at = now
            elif stage.sequence == index:
                stage.status = StageStatus.IN_PROGRESS.value
                stage.started_at = now
        self.current_stage = index

    def _assert_agent_step(self, agent_id, expected: OrderStatus) -> None:
        if str(self.agent_id or "") != str(agent_id) or OrderStatus(self.status) != expected:
            raise AssignmentNotFound("Order not found or not assigned to you")

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def update_status(self, status: str, description: str | None = None) -> None:
        """Set one of the coarse statuses and log it in the history."""
        allowed = {s.value for s in COARSE_STATUSES}
        if status not in allowed:
            raise InvalidStatus({"status": [f"Invalid status: {status}. Allowed: {', '.join(sorted(allowed))}"]})

        target = OrderStatus(status)
        self._change_status(target, description or _DEFAULT_DESCRIPTIONS.get(target, "Status updated"), datetime.now(UTC))

    # -------------------------------------------------------------------
    # Delivery journey
    # -------------------------------------------------------------------
    def begin_journey(self, stages: list[dict], stations: dict) -> None:
        """Attach a planned journey and start its first stage.

        ``stages`` come from the routing planner in travel order; ``stations``
        holds ``fulfillment_center_id``, ``local_station_id`` and optionally
        ``regional_hub_id``.
        """
        if OrderStatus(self.status) != OrderStatus.ORDER_PLACED or self.delivery_journey:
            raise NotReady({"status": [f"Order is {self.status}; only a newly placed order can be routed"]})
        self.assert_routable()

        now = datetime.now(UTC)
        for sequence, stage in enumerate(stages):
            self.add_delivery_journey(DeliveryStage(sequence=sequence, **stage))
        self.current_stage = 0
        self.assigned_stations = AssignedStations(**stations)
        self._change_status(OrderStatus.FULFILLMENT_PROCESSING, "Order is being processed at the fulfillment center", now)

        self.raise_(
            JourneyPlanned(
                order_id=str(self.id),
                fulfillment_center_id=stations["fulfillment_center_id"],
                regional_hub_id=stations.get("regional_hub_id"),
                local_station_id=stations["local_station_id"],
                stages=json.dumps([s["name"] for s in stages]),
                estimated_delivery=self.estimated_delivery,
                planned_at=now,
            )
        )

    def assert_routable(self) -> None:
        if not self.shipping_address or not (self.shipping_address.city or "").strip():
            raise MissingCity({"shipping_address": ["Shipping address has no city to route to"]})

    def advance_stage(self) -> DeliveryStage:
        """Complete the current stage, start the next and derive the order status from it."""
        stages = self.stages
        if not stages:
            raise ObjectNotFoundError(f"Delivery journey not found for order {self.id}")
        if OrderStatus(self.status) in _AGENT_OWNED_STATUSES:
            raise NotReady({"status": [f"Order is {self.status}; the delivery agent now drives its progress"]})
        if self.current_stage >= len(stages) - 1:
            raise AlreadyFinal({"current_stage": ["Order is already at the final stage"]})

        now = datetime.now(UTC)
        completed = stages[self.current_stage]
        self._move_to_stage(self.current_stage + 1, now)
        current = stages[self.current_stage]

        self._change_status(status_for_stage(current.name), current.description or "Stage advanced", now)
        self.raise_(
            StageAdvanced(
                order_id=str(self.id),
                completed_stage=completed.name,
                current_stage=current.name,
                current_stage_index=self.current_stage,
                advanced_at=now,
            )
        )
        return current

    # -------------------------------------------------------------------
    # Agent lifecycle
    # -------------------------------------------------------------------
    def assign_agent(self, agent_id, agent_name: str, agent_phone: str) -> None:
        if OrderStatus(self.status) != OrderStatus.WAITING_FOR_AGENT:
            raise NotReady({"status": [f"Order is {self.status}; an agent can only be assigned while waiting_for_agent"]})

        now = datetime.now(UTC)
        self.agent_id = agent_id
        self.agent_name = agent_name
        self.agent_phone = agent_phone
        self.assigned_at = now
        self._change_status(OrderStatus.AGENT_ASSIGNED, f"Delivery agent {agent_name} assigned", now)
        self.raise_(
            AgentAssigned(
                order_id=str(self.id),
                agent_id=str(agent_id),
                agent_name=agent_name,
                assigned_at=now,
            )
        )

    def pick_up(self, agent_id) -> None:
        self._assert_agent_step(agent_id, OrderStatus.AGENT_ASSIGNED)

        now = datetime.now(UTC)
        self.picked_up_at = now
        self._change_status(OrderStatus.PICKED_UP, "Package picked up by delivery agent", now)
        self.raise_(OrderPickedUp(order_id=str(self.id), agent_id=str(agent_id), picked_up_at=now))

    def start_delivery(self, agent_id) -> None:
        self._assert_agent_step(agent_id, OrderStatus.PICKED_UP)

        now = datetime.now(UTC)
        stages = self.stages
        if stages and self.current_stage < len(stages) - 1:
            self._move_to_stage(len(stages) - 1, now)
        self.on_the_way_at = now
        self._change_status(OrderStatus.ON_THE_WAY, "Delivery agent is on the way", now)
        self.raise_(DeliveryStarted(order_id=str(self.id), agent_id=str(agent_id), started_at=now))

    def complete_delivery(self, agent_id, delivery_proof: str | None = None) -> None:
        self._assert_agent_step(agent_id, OrderStatus.ON_THE_WAY)

        now = datetime.now(UTC)
        stages = self.stages
        if stages:
            if self.current_stage < len(stages) - 1:
                self._move_to_stage(len(stages) - 1, now)
            terminal = stages[-1]
            terminal.status = StageStatus.COMPLETED.value
            terminal.completed_at = now
        self.delivered_at = now
        self.delivery_proof = delivery_proof
        self._change_status(OrderStatus.DELIVERED, "Your package has been delivered", now)
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                agent_id=str(agent_id),
                delivery_proof=delivery_proof,
                delivered_at=now,
            )
        )

    def record_tracking(
        self,
        agent_latitude: float,
        agent_longitude: float,
        distance_remaining_km: float,
        estimated_arrival: datetime,
    ) -> None:
        now = datetime.now(UTC)
        self.tracking = TrackingSnapshot(
            agent_latitude=agent_latitude,
            agent_longitude=agent_longitude,
            distance_remaining_km=distance_remaining_km,
            estimated_arrival=estimated_arrival,
            last_update=now,
        )
        self.updated_at = now

    # -------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------
    def request_return(self, product_id) -> None:
        if self.item_for(product_id) is None and self.return_for(product_id) is None:
            raise ProductNotInOrder({"product_id": ["Product not found in order"]})
        if self.return_for(product_id) is not None:
            raise DuplicateReturn({"product_id": ["Return already requested for this item"]})

        now = datetime.now(UTC)
        self.add_returns(ReturnRequest(product_id=product_id, status=ReturnStatus.REQUESTED.value, requested_at=now))
        self.updated_at = now
        self.raise_(ReturnRequested(order_id=str(self.id), product_id=str(product_id), requested_at=now))

    def approve_return(self, product_id) -> dict:
        """Approve a requested return: drop the item and reduce the total in one step.

        The refund is the item's price times quantity as it stands now.
        """
        request = self.return_for(product_id)
        if request is None:
            raise ReturnNotFound({"product_id": ["Return request not found"]})
        if request.status == ReturnStatus.APPROVED.value:
            raise AlreadyApproved({"product_id": ["Return already approved"]})
        item = self.item_for(product_id)
        if item is None:
            raise ItemNotFound({"product_id": ["Item not found in order"]})

        now = datetime.now(UTC)
        refund_amount = round(item.price * item.quantity, 2)
        outcome = {
            "product_id": str(product_id),
            "product_name": item.name,
            "quantity_restored": item.quantity,
            "refund_amount": refund_amount,
        }

        request.status = ReturnStatus.APPROVED.value
        request.approved_at = now
        request.quantity = item.quantity
        request.refund_amount = refund_amount
        self.remove_items(item)
        self._recalculate_total()
        self.updated_at = now

        self.raise_(
            ReturnApproved(
                order_id=str(self.id),
                product_id=str(product_id),
                quantity=outcome["quantity_restored"],
                refund_amount=refund_amount,
                new_total=self.total_amount,
                approved_at=now,
            )
        )
        return outcome

    def mark_restocked(self, product_id) -> bool:
        """Record that an approved return's units went back to stock.

        Returns False when the restock was already recorded.
        """
        request = self.return_for(product_id)
        if request is None or request.status != ReturnStatus.APPROVED.value:
            raise ReturnNotFound({"product_id": ["No approved return for this product"]})
        if request.restocked_at is not None:
            return False

        now = datetime.now(UTC)
        request.restocked_at = now
        self.updated_at = now
        self.raise_(
            ReturnRestocked(
                order_id=str(self.id),
                product_id=str(product_id),
                quantity=request.quantity,
                restocked_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_dict(self) -> dict:
        address = self.shipping_address
        stations = self.assigned_stations
        tracking = self.tracking
        return {
            "id": str(self.id),
            "order_number": self.order_number,
            "customer_id": str(self.customer_id),
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "status": self.status,
            "display_status": customer_facing_status(self.status),
            "total_amount": self.total_amount,
            "payment_method": self.payment_method,
            "items": [
                {
                    "product_id": str(i.product_id),
                    "name": i.name,
                    "price": i.price,
                    "quantity": i.quantity,
                    "image": i.image,
                    "line_total": i.line_total,
                }
                for i in self.ordered_items
            ],
            "shipping_address": {
                "full_name": address.full_name,
                "address": address.address,
                "city": address.city,
                "state": address.state,
                "zip_code": address.zip_code,
                "latitude": address.latitude,
                "longitude": address.longitude,
            }
            if address
            else None,
            "delivery_journey": [stage_to_dict(s) for s in self.stages],
            "current_stage": self.current_stage,
            "assigned_stations": {
                "fulfillment_center_id": str(stations.fulfillment_center_id),
                "regional_hub_id": str(stations.regional_hub_id) if stations.regional_hub_id else None,
                "local_station_id": str(stations.local_station_id),
            }
            if stations
            else None,
            "agent": {
                "id": str(self.agent_id),
                "name": self.agent_name,
                "phone": self.agent_phone,
                "assigned_at": self.assigned_at,
            }
            if self.agent_id
            else None,
            "picked_up_at": self.picked_up_at,
            "on_the_way_at": self.on_the_way_at,
            "delivered_at": self.delivered_at,
            "delivery_proof": self.delivery_proof,
            "tracking": {
                "agent_latitude": tracking.agent_latitude,
                "agent_longitude": tracking.agent_longitude,
                "distance_remaining_km": tracking.distance_remaining_km,
                "estimated_arrival": tracking.estimated_arrival,
                "last_update": tracking.last_update,
            }
            if tracking
            else None,
            "returns": [
                {
                    "product_id": str(r.product_id),
                    "status": r.status,
                    "requested_at": r.requested_at,
                    "approved_at": r.approved_at,
                    "quantity": r.quantity,
                    "refund_amount": r.refund_amount,
                    "restocked": r.restocked_at is not None,
                }
                for r in (self.returns or [])
            ],
            "status_history": [
                {"status": h.status, "description": h.description, "timestamp": h.occurred_at} for h in self.history
            ],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def stage_to_dict(stage) -> dict:
    return {
        "name": stage.name,
        "location": stage.location,
        "address": stage.address,
        "status": stage.status,
        "estimated_time": stage.estimated_time,
        "started_at": stage.started_at,
        "completed_at": stage.completed_at,
        "description": stage.description,
    }
