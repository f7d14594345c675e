"""Agent location updates: command and handler.

Besides storing the fix, a location update refreshes the tracking cache on
the agent's current order while that order is actively being delivered.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier
from protean.utils.globals import current_domain

from storefront.agent.agent import DeliveryAgent
from storefront.delivery.geo import estimate_arrival, haversine_km
from storefront.domain import storefront
from storefront.order.order import ACTIVE_DELIVERY_STATUSES, Order, OrderStatus
from storefront.settings import get_settings

logger = structlog.get_logger(__name__)


@storefront.command(part_of="DeliveryAgent")
class UpdateAgentLocation:
    agent_id = Identifier(required=True)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    recorded_at = DateTime()


@storefront.command_handler(part_of=DeliveryAgent)
class AgentLocationHandler:
    @handle(UpdateAgentLocation)
    def update_location(self, command):
        agents = current_domain.repository_for(DeliveryAgent)
        agent = agents.get(command.agent_id)
        agent.report_location(command.latitude, command.longitude, command.recorded_at)
        agents.add(agent)

        if agent.current_order_id:
            self._refresh_tracking(agent)

    def _refresh_tracking(self, agent) -> None:
        orders = current_domain.repository_for(Order)
        try:
            order = orders.get(agent.current_order_id)
        except ObjectNotFoundError:
            logger.warning(
                "Agent holds an order that no longer exists",
                agent_id=str(agent.id),
                order_id=str(agent.current_order_id),
            )
            return

        if OrderStatus(order.status) not in ACTIVE_DELIVERY_STATUSES:
            return
        address = order.shipping_address
        if address is None or not address.has_coordinates():
            return

        fix = agent.current_location
        distance = haversine_km(fix.latitude, fix.longitude, address.latitude, address.longitude)
        order.record_tracking(
            agent_latitude=fix.latitude,
            agent_longitude=fix.longitude,
            distance_remaining_km=round(distance, 3),
            estimated_arrival=estimate_arrival(distance, get_settings().agent_average_speed_kmh),
        )
        orders.add(order)
