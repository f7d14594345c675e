"""Order placement: command and handler.

Placement is a small saga over the inventory ledger: every line reserves its
stock in turn, and if any line fails, everything reserved so far in the same
call is put back before the error surfaces. Prices are always taken from the
catalogue at the moment of placement.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, cart_for
from storefront.domain import storefront
from storefront.errors import ProductNotFound
from storefront.inventory.ledger import InventoryLedger
from storefront.order.order import Order
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    """Place an order for the given items and clear the customer's cart."""

    customer_id = Identifier(required=True)
    customer_name = String(max_length=200)
    customer_email = String(max_length=254)
    items = Text()  # JSON list of {"product_id", "quantity"}
    shipping_address = Text()  # JSON object
    payment_method = String(max_length=50)


def _requested_lines(raw_items: list[dict]) -> list[dict]:
    """Merge repeated products into one line each, keeping first-seen order."""
    merged: dict[str, int] = {}
    for raw in raw_items:
        product_id = str(raw.get("product_id") or "")
        quantity = raw.get("quantity", 1)
        if not product_id:
            raise ValidationError({"items": ["Every item needs a product_id"]})
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Invalid quantity for product {product_id}"]})
        merged[product_id] = merged.get(product_id, 0) + quantity
    return [{"product_id": pid, "quantity": qty} for pid, qty in merged.items()]


def _load(value: str | None, default):
    if not value:
        return default
    return json.loads(value) if isinstance(value, str) else value


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        requested = _requested_lines(_load(command.items, []))
        shipping_address = _load(command.shipping_address, {})
        Order.validate_placement(requested, shipping_address, command.payment_method)

        products = current_domain.repository_for(Product)
        ledger = InventoryLedger(products)
        reserved: list[tuple[str, int]] = []
        lines = []

        try:
            for line in requested:
                try:
                    products.get(line["product_id"])
                except ObjectNotFoundError:
                    raise ProductNotFound(f"Product {line['product_id']} not found")

                product = ledger.reserve_stock(line["product_id"], line["quantity"])
                reserved.append((line["product_id"], line["quantity"]))
                lines.append(
                    {
                        "product_id": line["product_id"],
                        "name": product.name,
                        "price": product.price,
                        "quantity": line["quantity"],
                        "image": product.image,
                    }
                )
        except Exception:
            self._release(ledger, reserved, command.customer_id)
            raise

        order = Order.place(
            customer_id=command.customer_id,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            lines=lines,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
        )
        current_domain.repository_for(Order).add(order)

        cart = cart_for(command.customer_id)
        if cart is not None:
            cart.clear()
            current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            customer_id=str(command.customer_id),
            total_amount=order.total_amount,
            item_count=len(lines),
        )
        return {
            "id": str(order.id),
            "order_number": order.order_number,
            "total_amount": order.total_amount,
            "status": order.status,
        }

    def _release(self, ledger, reserved, customer_id) -> None:
        if not reserved:
            return
        logger.warning(
            "Order placement failed, releasing reserved stock",
            customer_id=str(customer_id),
            reservations=len(reserved),
        )
        for product_id, quantity in reversed(reserved):
            try:
                ledger.restore_stock(product_id, quantity)
            except Exception:
                logger.exception(
                    "Could not release reserved stock",
                    product_id=product_id,
                    quantity=quantity,
                )
