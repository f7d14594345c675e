"""Agent hand-off steps: pickup, start delivery, complete.

Each step is only accepted from the agent assigned to the order and only from
the immediately preceding status; anything else reads as "not found" so
stale, duplicate and wrong-agent calls fail the same way.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.agent.agent import DeliveryAgent
from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PickUpOrder:
    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)


@storefront.command(part_of="Order")
class StartDelivery:
    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)


@storefront.command(part_of="Order")
class CompleteDelivery:
    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    delivery_proof = String(max_length=500)


@storefront.command_handler(part_of=Order)
class HandoverHandler:
    @handle(PickUpOrder)
    def pick_up(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.pick_up(command.agent_id)
        repo.add(order)
        return order.status

    @handle(StartDelivery)
    def start_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.start_delivery(command.agent_id)
        repo.add(order)
        return order.status

    @handle(CompleteDelivery)
    def complete_delivery(self, command):
        orders = current_domain.repository_for(Order)
        agents = current_domain.repository_for(DeliveryAgent)
        order = orders.get(command.order_id)
        order.complete_delivery(command.agent_id, command.delivery_proof)

        agent = agents.get(command.agent_id)
        agent.release()

        orders.add(order)
        agents.add(agent)
        logger.info(
            "Order delivered",
            order_id=str(order.id),
            agent_id=str(agent.id),
            total_deliveries=agent.total_deliveries,
        )
        return order.status
