"""Tests for the inventory ledger's compare-and-swap behaviour.

A small versioned repository stands in for the Product repository so that a
competing writer can be slipped in between the ledger's read and its write.
"""

import pytest
from protean import current_domain
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from storefront.errors import InsufficientStock
from storefront.inventory.ledger import InventoryLedger
from storefront.product.product import Product


class _VersionedProducts:
    """Keeps (stock, version) per product and rejects saves made from a stale read."""

    def __init__(self, stock, product_id="prod-1"):
        self.product_id = product_id
        self.rows = {product_id: {"stock": stock, "version": 0}}
        self.reads = {}
        self.before_save = None
        self.saves = 0

    def get(self, product_id):
        if product_id not in self.rows:
            raise ObjectNotFoundError(f"Product {product_id} does not exist")
        row = self.rows[product_id]
        product = Product(id=product_id, name="Desk Lamp", price=24.5, stock=row["stock"])
        self.reads[id(product)] = row["version"]
        return product

    def add(self, product):
        hook, self.before_save = self.before_save, None
        if hook is not None:
            hook()
        row = self.rows[str(product.id)]
        if self.reads.pop(id(product)) != row["version"]:
            raise ExpectedVersionError("Wrong expected version")
        row["stock"] = product.stock
        row["version"] += 1
        self.saves += 1
        return product

    @property
    def stock(self):
        return self.rows[self.product_id]["stock"]


class TestReserveStock:
    def test_reserves_when_enough_stock(self):
        products = _VersionedProducts(stock=5)
        InventoryLedger(products, max_attempts=3).reserve_stock("prod-1", 5)
        assert products.stock == 0

    def test_second_reservation_after_sellout_fails(self):
        products = _VersionedProducts(stock=5)
        ledger = InventoryLedger(products, max_attempts=3)
        ledger.reserve_stock("prod-1", 5)
        with pytest.raises(InsufficientStock):
            ledger.reserve_stock("prod-1", 1)
        assert products.stock == 0

    def test_missing_product_is_insufficient_stock(self):
        products = _VersionedProducts(stock=5)
        with pytest.raises(InsufficientStock):
            InventoryLedger(products, max_attempts=3).reserve_stock("prod-unknown", 1)

    def test_non_positive_quantity_is_rejected(self):
        products = _VersionedProducts(stock=5)
        with pytest.raises(ValidationError):
            InventoryLedger(products, max_attempts=3).reserve_stock("prod-1", 0)

    def test_retries_after_a_concurrent_write(self):
        products = _VersionedProducts(stock=5)
        ledger = InventoryLedger(products, max_attempts=3)
        competitor = InventoryLedger(products, max_attempts=3)
        products.before_save = lambda: competitor.reserve_stock("prod-1", 1)

        ledger.reserve_stock("prod-1", 2)

        assert products.stock == 2
        assert products.saves == 2

    def test_concurrent_reservations_for_the_last_units_grant_exactly_one(self):
        products = _VersionedProducts(stock=3)
        first = InventoryLedger(products, max_attempts=3)
        second = InventoryLedger(products, max_attempts=3)
        outcomes = []

        def second_runs_between_read_and_write():
            second.reserve_stock("prod-1", 3)
            outcomes.append("second")

        products.before_save = second_runs_between_read_and_write
        with pytest.raises(InsufficientStock):
            first.reserve_stock("prod-1", 3)

        assert outcomes == ["second"]
        assert products.stock == 0

    def test_gives_up_after_max_attempts(self):
        products = _VersionedProducts(stock=10)
        ledger = InventoryLedger(products, max_attempts=2)
        competitor = InventoryLedger(products, max_attempts=2)

        def keep_interfering():
            competitor.reserve_stock("prod-1", 1)
            products.before_save = keep_interfering_once_more

        def keep_interfering_once_more():
            competitor.reserve_stock("prod-1", 1)

        products.before_save = keep_interfering

        with pytest.raises(InsufficientStock) as exc:
            ledger.reserve_stock("prod-1", 1)
        assert "no longer available" in exc.value.messages["stock"][0]
        assert products.stock == 8


class TestRestoreStock:
    def test_increments_stock(self):
        products = _VersionedProducts(stock=1)
        InventoryLedger(products, max_attempts=3).restore_stock("prod-1", 2)
        assert products.stock == 3

    def test_missing_product_is_not_found(self):
        products = _VersionedProducts(stock=1)
        with pytest.raises(ObjectNotFoundError):
            InventoryLedger(products, max_attempts=3).restore_stock("prod-unknown", 2)

    def test_retries_after_a_concurrent_write(self):
        products = _VersionedProducts(stock=4)
        competitor = InventoryLedger(products, max_attempts=3)
        products.before_save = lambda: competitor.reserve_stock("prod-1", 1)

        InventoryLedger(products, max_attempts=3).restore_stock("prod-1", 2)

        assert products.stock == 5


class _CompetingReads:
    """Forwards to the Product repository and lets one competing write land after the next read."""

    def __init__(self, repo):
        self.repo = repo
        self.after_read = None
        self.reads = 0

    def get(self, product_id):
        product = self.repo.get(product_id)
        self.reads += 1
        hook, self.after_read = self.after_read, None
        if hook is not None:
            hook()
        return product

    def add(self, product):
        return self.repo.add(product)


class TestAgainstTheProductRepository:
    """Outside a unit of work every save commits at once, so the ledger's own loop sees the conflict."""

    @pytest.fixture()
    def product_id(self):
        product = Product(name="Desk Lamp", price=24.5, stock=5)
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    def test_reservation_retries_past_a_committed_competitor(self, product_id):
        repo = current_domain.repository_for(Product)
        products = _CompetingReads(repo)
        products.after_read = lambda: InventoryLedger(repo, max_attempts=3).restore_stock(product_id, 1)

        InventoryLedger(products, max_attempts=3).reserve_stock(product_id, 2)

        assert products.reads == 2
        assert repo.get(product_id).stock == 4
