"""Read-side view of a customer's cart joined with current catalogue data."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.cart import cart_for
from storefront.product.product import Product


def cart_contents(customer_id) -> dict:
    """Items priced at today's catalogue price; products since removed are skipped."""
    cart = cart_for(customer_id)
    lines = []
    if cart is not None:
        products = current_domain.repository_for(Product)
        for item in cart.items or []:
            try:
                product = products.get(item.product_id)
            except ObjectNotFoundError:
                continue
            lines.append(
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "price": product.price,
                    "image": product.image,
                    "stock": product.stock,
                    "quantity": item.quantity,
                    "line_total": round(product.price * item.quantity, 2),
                }
            )

    return {
        "customer_id": str(customer_id),
        "items": lines,
        "total": round(sum(line["line_total"] for line in lines), 2),
    }
