"""Wishlist aggregate: products a customer has saved for later.

A product appears at most once. Adding one that is already saved, or removing
one that is not, changes nothing.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, HasMany, Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.wishlist.events import WishlistItemAdded, WishlistItemRemoved


@storefront.entity(part_of="Wishlist")
class WishlistEntry:
    product_id = Identifier(required=True)
    added_at = DateTime()


@storefront.aggregate
class Wishlist:
    customer_id = Identifier(required=True)
    entries = HasMany(WishlistEntry)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    def _find(self, product_id):
        return next((e for e in (self.entries or []) if str(e.product_id) == str(product_id)), None)

    def product_ids(self) -> list[str]:
        """Saved product ids, earliest first."""
        entries = sorted(self.entries or [], key=lambda e: e.added_at or self.created_at)
        return [str(e.product_id) for e in entries]

    def save_product(self, product_id) -> bool:
        if self._find(product_id) is not None:
            return False

        now = datetime.now(UTC)
        self.add_entries(WishlistEntry(product_id=product_id, added_at=now))
        self.updated_at = now
        self.raise_(
            WishlistItemAdded(wishlist_id=str(self.id), customer_id=str(self.customer_id), product_id=str(product_id))
        )
        return True

    def drop_product(self, product_id) -> bool:
        entry = self._find(product_id)
        if entry is None:
            return False

        self.remove_entries(entry)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            WishlistItemRemoved(wishlist_id=str(self.id), customer_id=str(self.customer_id), product_id=str(product_id))
        )
        return True


def wishlist_for(customer_id, create: bool = False):
    """Return the customer's wishlist, creating an unsaved one when asked to."""
    repo = current_domain.repository_for(Wishlist)
    found = repo._dao.query.filter(customer_id=str(customer_id)).all().items
    if found:
        return repo.get(found[0].id)
    return Wishlist.create(customer_id) if create else None
