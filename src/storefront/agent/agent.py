"""DeliveryAgent aggregate: the last-mile courier.

State Machine:
    AVAILABLE → BUSY      (dispatched to an order)
    BUSY → AVAILABLE      (order delivered, or taken off the agent by an admin)
    AVAILABLE ⇄ OFFLINE   (agent goes off or on shift)
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, ValueObject

from storefront.agent.events import (
    AgentAvailabilityChanged,
    AgentDispatched,
    AgentLocationReported,
    AgentRegistered,
    AgentReleased,
)
from storefront.domain import storefront


class AgentStatus(Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


@storefront.value_object(part_of="DeliveryAgent")
class GeoFix:
    """A position reported by the agent's device."""

    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    recorded_at = DateTime()


@storefront.aggregate
class DeliveryAgent:
    name = String(required=True, max_length=200)
    phone = String(required=True, max_length=30)
    vehicle_type = String(required=True, max_length=50)
    license_number = String(max_length=50)
    assigned_station_id = Identifier()
    status = String(choices=AgentStatus, default=AgentStatus.AVAILABLE.value)
    current_location = ValueObject(GeoFix)
    current_order_id = Identifier()
    total_deliveries = Integer(default=0, min_value=0)
    rating = Float(default=5.0, min_value=0.0, max_value=5.0)
    last_seen = DateTime()
    created_at = DateTime()

    @classmethod
    def register(cls, name, phone, vehicle_type, license_number=None, assigned_station_id=None):
        now = datetime.now(UTC)
        agent = cls(
            name=name,
            phone=phone,
            vehicle_type=vehicle_type,
            license_number=license_number,
            assigned_station_id=assigned_station_id,
            status=AgentStatus.AVAILABLE.value,
            total_deliveries=0,
            rating=5.0,
            created_at=now,
        )
        agent.raise_(
            AgentRegistered(
                agent_id=str(agent.id),
                name=name,
                vehicle_type=vehicle_type,
                assigned_station_id=assigned_station_id,
                registered_at=now,
            )
        )
        return agent

    def report_location(self, latitude: float, longitude: float, recorded_at: datetime | None = None) -> None:
        now = datetime.now(UTC)
        recorded_at = recorded_at or now
        self.current_location = GeoFix(latitude=latitude, longitude=longitude, recorded_at=recorded_at)
        self.last_seen = now
        self.raise_(
            AgentLocationReported(
                agent_id=str(self.id),
                latitude=latitude,
                longitude=longitude,
                recorded_at=recorded_at,
            )
        )

    def dispatch(self, order_id) -> None:
        """Take on an order; only an available agent can be dispatched."""
        if self.status != AgentStatus.AVAILABLE.value:
            raise ValidationError({"status": [f"Agent is {self.status} and cannot take an order"]})

        now = datetime.now(UTC)
        self.status = AgentStatus.BUSY.value
        self.current_order_id = order_id
        self.raise_(AgentDispatched(agent_id=str(self.id), order_id=str(order_id), dispatched_at=now))

    def release(self, delivered: bool = True) -> None:
        """Finish the current order and become available again.

        Only a delivered order counts towards ``total_deliveries``.
        """
        if self.status != AgentStatus.BUSY.value or not self.current_order_id:
            raise ValidationError({"status": ["Agent has no order to release"]})

        now = datetime.now(UTC)
        order_id = str(self.current_order_id)
        self.status = AgentStatus.AVAILABLE.value
        self.current_order_id = None
        if delivered:
            self.total_deliveries = (self.total_deliveries or 0) + 1
        self.raise_(AgentReleased(agent_id=str(self.id), order_id=order_id, delivered=delivered, released_at=now))

    def change_availability(self, online: bool) -> None:
        if self.status == AgentStatus.BUSY.value:
            raise ValidationError({"status": ["A busy agent cannot change availability"]})

        target = AgentStatus.AVAILABLE if online else AgentStatus.OFFLINE
        previous = self.status
        if previous == target.value:
            return
        self.status = target.value
        self.raise_(
            AgentAvailabilityChanged(
                agent_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=datetime.now(UTC),
            )
        )

    def to_dict(self) -> dict:
        location = None
        if self.current_location:
            location = {
                "latitude": self.current_location.latitude,
                "longitude": self.current_location.longitude,
                "recorded_at": self.current_location.recorded_at,
            }
        return {
            "id": str(self.id),
            "name": self.name,
            "phone": self.phone,
            "vehicle_type": self.vehicle_type,
            "license_number": self.license_number,
            "assigned_station_id": str(self.assigned_station_id) if self.assigned_station_id else None,
            "status": self.status,
            "current_location": location,
            "current_order_id": str(self.current_order_id) if self.current_order_id else None,
            "total_deliveries": self.total_deliveries,
            "rating": self.rating,
            "last_seen": self.last_seen,
        }
