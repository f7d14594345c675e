"""Order returns: commands, handler and the approval flow.

Approval is split in two units of work. ``ApproveReturn`` changes only the
order: the return is marked approved, the item leaves the order and the total
drops, all in one save. ``RestockReturn`` then puts the units back through the
inventory ledger. The restock is keyed on the return itself (its
``restocked_at`` marker), so running it again never restocks twice and a
failed restock can simply be re-run by ``reconcile_restocks``.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.inventory.ledger import InventoryLedger
from storefront.order.order import Order, ReturnStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class RequestReturn:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier()  # When given, the order must belong to this customer


@storefront.command(part_of="Order")
class ApproveReturn:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Order")
class RestockReturn:
    """Put an approved return's units back into stock, at most once."""

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class OrderReturnsHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.customer_id and str(order.customer_id) != str(command.customer_id):
            raise ObjectNotFoundError(f"Order {command.order_id} not found")

        order.request_return(command.product_id)
        repo.add(order)

    @handle(ApproveReturn)
    def approve_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        outcome = order.approve_return(command.product_id)
        repo.add(order)
        return outcome

    @handle(RestockReturn)
    def restock_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.mark_restocked(command.product_id):
            return False

        quantity = order.return_for(command.product_id).quantity
        InventoryLedger().restore_stock(command.product_id, quantity)
        repo.add(order)
        return True


def approve_return(order_id: str, product_id: str) -> dict:
    """Approve a return, then restock it as a separate best-effort step.

    The outcome reports ``restocked: False`` when the restock failed; the
    order change stands either way.
    """
    outcome = current_domain.process(
        ApproveReturn(order_id=order_id, product_id=product_id),
        asynchronous=False,
    )
    logger.info(
        "Return approved",
        order_id=str(order_id),
        product_id=str(product_id),
        refund_amount=outcome["refund_amount"],
    )

    try:
        current_domain.process(
            RestockReturn(order_id=order_id, product_id=product_id),
            asynchronous=False,
        )
        outcome["restocked"] = True
    except Exception:
        logger.exception(
            "Restock after return approval failed; left for reconciliation",
            order_id=str(order_id),
            product_id=str(product_id),
            quantity=outcome["quantity_restored"],
        )
        outcome["restocked"] = False
    return outcome


def pending_restocks() -> list[tuple[str, str]]:
    """(order_id, product_id) pairs whose approved return has not been restocked yet."""
    orders = current_domain.repository_for(Order)._dao.query.order_by("created_at").limit(None).all().items
    pending = []
    for order in orders:
        for request in order.returns or []:
            if request.status == ReturnStatus.APPROVED.value and request.restocked_at is None:
                pending.append((str(order.id), str(request.product_id)))
    return pending


def reconcile_restocks() -> dict:
    """Re-run every outstanding restock. Failures are logged and counted."""
    restocked = 0
    failed = 0
    for order_id, product_id in pending_restocks():
        try:
            current_domain.process(
                RestockReturn(order_id=order_id, product_id=product_id),
                asynchronous=False,
            )
            restocked += 1
        except ObjectNotFoundError:
            logger.warning("Restock target missing", order_id=order_id, product_id=product_id)
            failed += 1
        except Exception:
            logger.exception("Restock failed during reconciliation", order_id=order_id, product_id=product_id)
            failed += 1
    return {"restocked": restocked, "failed": failed}
