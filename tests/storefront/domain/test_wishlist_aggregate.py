"""Tests for the Wishlist aggregate."""

from storefront.wishlist.events import WishlistItemAdded, WishlistItemRemoved
from storefront.wishlist.wishlist import Wishlist


def _wishlist():
    return Wishlist.create("cust-001")


class TestWishlist:
    def test_save_raises_event(self):
        wishlist = _wishlist()
        assert wishlist.save_product("prod-1") is True
        assert wishlist.product_ids() == ["prod-1"]
        assert isinstance(wishlist._events[-1], WishlistItemAdded)

    def test_duplicate_save_is_ignored(self):
        wishlist = _wishlist()
        wishlist.save_product("prod-1")
        wishlist._events.clear()

        assert wishlist.save_product("prod-1") is False
        assert wishlist.product_ids() == ["prod-1"]
        assert wishlist._events == []

    def test_drop(self):
        wishlist = _wishlist()
        wishlist.save_product("prod-1")
        wishlist.save_product("prod-2")

        assert wishlist.drop_product("prod-1") is True
        assert wishlist.product_ids() == ["prod-2"]
        assert isinstance(wishlist._events[-1], WishlistItemRemoved)

    def test_drop_unsaved(self):
        wishlist = _wishlist()
        assert wishlist.drop_product("prod-1") is False
        assert wishlist._events == []
