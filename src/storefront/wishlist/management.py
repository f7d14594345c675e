"""Wishlist management: commands, handler and the read view."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.product import Product
from storefront.wishlist.wishlist import Wishlist, wishlist_for


@storefront.command(part_of="Wishlist")
class SaveToWishlist:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class RemoveFromWishlist:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Wishlist)
class WishlistHandler:
    @handle(SaveToWishlist)
    def save(self, command):
        # Raises ObjectNotFoundError for unknown products
        current_domain.repository_for(Product).get(command.product_id)

        wishlist = wishlist_for(command.customer_id, create=True)
        if wishlist.save_product(command.product_id):
            current_domain.repository_for(Wishlist).add(wishlist)

    @handle(RemoveFromWishlist)
    def remove(self, command):
        wishlist = wishlist_for(command.customer_id)
        if wishlist is not None and wishlist.drop_product(command.product_id):
            current_domain.repository_for(Wishlist).add(wishlist)


def wishlist_products(customer_id) -> list:
    """Saved products in the order they were saved; removed products are skipped."""
    wishlist = wishlist_for(customer_id)
    if wishlist is None:
        return []

    products = current_domain.repository_for(Product)
    saved = []
    for product_id in wishlist.product_ids():
        try:
            saved.append(products.get(product_id))
        except ObjectNotFoundError:
            continue
    return saved
