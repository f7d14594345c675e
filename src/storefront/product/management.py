"""Catalogue management: commands and handler.

Admins add products with an opening stock level, edit their catalogue
details, receive further stock and take products off the catalogue.
Removing a product deletes it outright: carts and wishlists skip it from
then on, and placed orders keep their own snapshot of it.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.inventory.ledger import InventoryLedger
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class AddProduct:
    """Add a product to the catalogue."""

    name = String(required=True, max_length=200)
    description = Text()
    price = Float(required=True, min_value=0.0)
    image = String(max_length=500)
    category = String(max_length=100)
    stock = Integer(default=0, min_value=0)


@storefront.command(part_of="Product")
class UpdateProduct:
    """Change catalogue details; fields left unset keep their current value."""

    product_id = Identifier(required=True)
    name = String(max_length=200)
    description = Text()
    price = Float(min_value=0.0)
    image = String(max_length=500)
    category = String(max_length=100)


@storefront.command(part_of="Product")
class RemoveProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class ReceiveStock:
    """Book a delivery of units into stock."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.add(
            name=command.name,
            price=command.price,
            stock=command.stock or 0,
            description=command.description,
            image=command.image,
            category=command.category,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        changed = product.update_details(
            name=command.name,
            description=command.description,
            price=command.price,
            image=command.image,
            category=command.category,
        )
        if changed:
            repo.add(product)
        return changed

    @handle(RemoveProduct)
    def remove_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        repo._dao.delete(product)
        logger.info("Product removed", product_id=str(product.id), name=product.name, stock=product.stock)

    @handle(ReceiveStock)
    def receive_stock(self, command):
        product = InventoryLedger().restore_stock(command.product_id, command.quantity)
        return product.stock
