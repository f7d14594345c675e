"""Order read queries for customers and admins."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.order.order import Order


def _newest_first(query) -> list:
    return query.order_by("-created_at").limit(None).all().items


def orders_for_customer(customer_id) -> list:
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query.filter(customer_id=str(customer_id)))


def order_for_customer(order_id, customer_id) -> Order:
    """Fetch an order, hiding other customers' orders as not found."""
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.customer_id) != str(customer_id):
        raise ObjectNotFoundError(f"Order {order_id} not found")
    return order


def all_orders() -> list:
    return _newest_first(current_domain.repository_for(Order)._dao.query)
