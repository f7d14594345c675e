"""Admin analytics read model.

Revenue always uses each order's current ``total_amount``, so approved
returns are already netted out. Cancelled orders are excluded throughout.
"""

from collections import defaultdict
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.utils.globals import current_domain

from storefront.order.order import Order, OrderStatus
from storefront.product.product import Product


class RevenuePeriod(Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


_PERIOD_DAYS = {
    RevenuePeriod.WEEK: 7,
    RevenuePeriod.MONTH: 30,
    RevenuePeriod.YEAR: 365,
}


def _billable_orders() -> list:
    orders = current_domain.repository_for(Order)._dao.query.limit(None).all().items
    return [o for o in orders if o.status != OrderStatus.CANCELLED.value]


def dashboard() -> dict:
    products = current_domain.repository_for(Product)._dao.query.limit(None).all().items
    orders = _billable_orders()
    return {
        "total_products": len(products),
        "total_orders": len(orders),
        "total_customers": len({str(o.customer_id) for o in orders}),
        "total_revenue": round(sum(o.total_amount or 0 for o in orders), 2),
    }


def revenue_by_day(period: str | None = None, now: datetime | None = None) -> list[dict]:
    """Revenue per calendar day (UTC) over the period, oldest day first.

    Unknown periods fall back to a month.
    """
    try:
        chosen = RevenuePeriod(period or RevenuePeriod.MONTH.value)
    except ValueError:
        chosen = RevenuePeriod.MONTH

    now = now or datetime.now(UTC)
    since = now - timedelta(days=_PERIOD_DAYS[chosen])
    totals: dict = defaultdict(float)
    for order in _billable_orders():
        if order.created_at is None or order.created_at < since:
            continue
        totals[order.created_at.astimezone(UTC).date()] += order.total_amount or 0

    return [{"date": day.isoformat(), "revenue": round(totals[day], 2)} for day in sorted(totals)]
