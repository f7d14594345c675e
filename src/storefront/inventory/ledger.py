"""Inventory ledger: the only writer of product stock.

Both primitives are compare-and-swap loops over the Product aggregate's
version: read the product, apply the change, save. A save against a stale
version raises ``ExpectedVersionError``; the ledger then re-reads and
re-checks, so a reservation can never be granted against stock that changed
underneath it.

That loop only sees the conflict when the save commits straight away, i.e.
when the ledger is called outside a unit of work. Inside a command handler the
save is buffered and the conflict surfaces at commit instead; Protean then
re-runs the whole handler in a fresh unit of work (``version_retry``), which
re-reads the product just the same. Once those retries are spent the conflict
propagates as ``ExpectedVersionError`` and the API answers 409.
"""

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.errors import InsufficientStock
from storefront.product.product import Product
from storefront.settings import get_settings

logger = structlog.get_logger(__name__)


class InventoryLedger:
    """Atomic reserve/restore over product stock.

    ``products`` is the Product repository; it defaults to the active
    domain's repository so handlers can simply write ``InventoryLedger()``.
    """

    def __init__(self, products=None, max_attempts: int | None = None):
        self._products = products or current_domain.repository_for(Product)
        self._max_attempts = max_attempts or get_settings().stock_reservation_attempts

    def reserve_stock(self, product_id: str, quantity: int) -> Product:
        """Decrement stock by ``quantity`` if, at the moment of the write, enough is on hand.

        Raises ``InsufficientStock`` when the product is missing, when it holds
        fewer units than requested, or when every attempt lost a concurrent
        write race.
        """
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        name = product_id
        for attempt in range(1, self._max_attempts + 1):
            try:
                product = self._products.get(product_id)
            except ObjectNotFoundError:
                raise InsufficientStock(
                    {"product_id": [f"Product {product_id} is no longer available in requested quantity"]}
                )

            name = product.name
            product.reserve(quantity)
            try:
                self._products.add(product)
            except ExpectedVersionError:
                logger.info(
                    "Stock write lost a concurrent update, re-reading",
                    product_id=str(product_id),
                    attempt=attempt,
                )
                continue

            logger.debug(
                "Stock reserved",
                product_id=str(product_id),
                quantity=quantity,
                remaining=product.stock,
            )
            return product

        raise InsufficientStock({"stock": [f"{name} is no longer available in requested quantity"]})

    def restore_stock(self, product_id: str, quantity: int) -> Product:
        """Increment stock by ``quantity``.

        A missing product propagates as ``ObjectNotFoundError``.
        """
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        for attempt in range(1, self._max_attempts + 1):
            product = self._products.get(product_id)
            product.restore(quantity)
            try:
                self._products.add(product)
            except ExpectedVersionError:
                if attempt == self._max_attempts:
                    raise
                logger.info(
                    "Stock restore lost a concurrent update, re-reading",
                    product_id=str(product_id),
                    attempt=attempt,
                )
                continue

            logger.debug(
                "Stock restored",
                product_id=str(product_id),
                quantity=quantity,
                remaining=product.stock,
            )
            return product
