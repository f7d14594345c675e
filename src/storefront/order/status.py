"""Order status update: command and handler.

An override applied while an agent is carrying the order also frees that
agent in the same unit of work, without counting a delivery. Every status an
admin can set lies outside the agent hand-off steps.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.agent.agent import AgentStatus, DeliveryAgent
from storefront.domain import storefront
from storefront.order.order import ACTIVE_DELIVERY_STATUSES, Order, OrderStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    """Set one of the customer-facing statuses on an order."""

    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    description = String(max_length=500)


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        carried = OrderStatus(order.status) in ACTIVE_DELIVERY_STATUSES and order.agent_id
        order.update_status(command.status, command.description)
        repo.add(order)

        if carried:
            self._release_agent(order)
        return order.status

    def _release_agent(self, order):
        agents = current_domain.repository_for(DeliveryAgent)
        agent = agents.get(order.agent_id)
        if agent.status != AgentStatus.BUSY.value or str(agent.current_order_id) != str(order.id):
            return

        agent.release(delivered=False)
        agents.add(agent)
        logger.info(
            "Agent released by status override",
            order_id=str(order.id),
            agent_id=str(agent.id),
            status=order.status,
        )
