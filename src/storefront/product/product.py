"""Product aggregate: the stock-holding side of the catalogue.

Stock is only ever changed through ``reserve`` and ``restore``; callers go
through the inventory ledger, which wraps both in a version-checked write.
Catalogue details (name, price, image and so on) change through
``update_details``, which never touches stock.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String, Text

from storefront.domain import storefront
from storefront.errors import InsufficientStock
from storefront.product.events import ProductAdded, ProductDetailsUpdated, StockReserved, StockRestored


_DETAIL_FIELDS = ("name", "description", "price", "image", "category")


@storefront.aggregate
class Product:
    name = String(required=True, max_length=200)
    description = Text()
    price = Float(required=True, min_value=0.0)
    image = String(max_length=500)
    category = String(max_length=100)
    stock = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def add(
        cls,
        name: str,
        price: float,
        stock: int = 0,
        description: str | None = None,
        image: str | None = None,
        category: str | None = None,
    ):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            price=price,
            stock=stock,
            description=description,
            image=image,
            category=category,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=name,
                price=price,
                stock=stock,
                added_at=now,
            )
        )
        return product

    def update_details(self, **changes) -> list[str]:
        """Apply the given catalogue details; ``None`` values are left as they are.

        Returns the names of the fields that actually changed. Orders already
        placed keep the price they were placed at.
        """
        changed = []
        for field in _DETAIL_FIELDS:
            value = changes.get(field)
            if value is not None and value != getattr(self, field):
                setattr(self, field, value)
                changed.append(field)
        if not changed:
            return changed

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            ProductDetailsUpdated(
                product_id=str(self.id),
                changed_fields=",".join(changed),
                price=self.price,
                updated_at=now,
            )
        )
        return changed

    def reserve(self, quantity: int) -> None:
        """Take ``quantity`` units out of stock."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if self.stock < quantity:
            raise InsufficientStock(
                {"stock": [f"Insufficient stock for {self.name}. Available: {self.stock}, Requested: {quantity}"]}
            )

        now = datetime.now(UTC)
        previous = self.stock
        self.stock = previous - quantity
        self.updated_at = now
        self.raise_(
            StockReserved(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                reserved_at=now,
            )
        )

    def restore(self, quantity: int) -> None:
        """Put ``quantity`` units back into stock."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        now = datetime.now(UTC)
        previous = self.stock
        self.stock = previous + quantity
        self.updated_at = now
        self.raise_(
            StockRestored(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                restored_at=now,
            )
        )
