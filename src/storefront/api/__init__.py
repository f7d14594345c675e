"""Storefront API package."""

from storefront.api.routes import (
    admin_router,
    cart_router,
    delivery_router,
    order_router,
    product_router,
    wishlist_router,
)

__all__ = ["product_router", "cart_router", "wishlist_router", "order_router", "delivery_router", "admin_router"]
