"""Stage advancement: command and handler.

Advancing from ``agent_assignment`` to the terminal ``out_for_delivery`` stage
is allowed without an agent. Such an order is out of reach of ``AssignAgent``
and the agent hand-off steps; an admin status update closes it out.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, stage_to_dict


@storefront.command(part_of="Order")
class AdvanceStage:
    """Move an order's journey on to its next stage."""

    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class AdvanceStageHandler:
    @handle(AdvanceStage)
    def advance_stage(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        stage = order.advance_stage()
        repo.add(order)
        return {
            "current_stage": stage_to_dict(stage),
            "current_stage_index": order.current_stage,
            "order_status": order.status,
        }
