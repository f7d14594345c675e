"""Agent assignment: command and handler.

The order and the chosen agent are saved in the same unit of work, so an
order can never end up assigned to an agent who is not marked busy.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.agent.agent import DeliveryAgent
from storefront.agent.roster import available_agents_at
from storefront.agent.selection import get_selection_policy
from storefront.domain import storefront
from storefront.errors import NoAvailableAgent, NoLocalStation, NotReady
from storefront.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class AssignAgent:
    """Dispatch an available agent from the order's local station."""

    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class AssignAgentHandler:
    @handle(AssignAgent)
    def assign_agent(self, command):
        orders = current_domain.repository_for(Order)
        order = orders.get(command.order_id)
        if OrderStatus(order.status) != OrderStatus.WAITING_FOR_AGENT:
            raise NotReady({"status": ["Order not ready for agent assignment"]})

        stations = order.assigned_stations
        if stations is None or not stations.local_station_id:
            raise NoLocalStation("No local station assigned to this order")

        candidates = available_agents_at(stations.local_station_id)
        if not candidates:
            raise NoAvailableAgent("No available agents at local station")

        policy = get_selection_policy()
        agent = policy.select(candidates, order)

        order.assign_agent(str(agent.id), agent.name, agent.phone)
        agent.dispatch(str(order.id))
        orders.add(order)
        current_domain.repository_for(DeliveryAgent).add(agent)

        logger.info(
            "Delivery agent assigned",
            order_id=str(order.id),
            agent_id=str(agent.id),
            policy=policy.name,
            candidates=len(candidates),
        )
        return {"id": str(agent.id), "name": agent.name, "phone": agent.phone}
