"""Checkout load test scenarios.

Two journeys: a customer who browses, fills a cart, checks out and sometimes
returns an item, and a flash-sale crowd hammering a single low-stock product
so that the inventory ledger's compare-and-swap is exercised under load.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import ADMIN_HEADERS, customer_headers, place_order_data, product_data
from loadtests.helpers.response import extract_error_detail, is_stock_conflict
from loadtests.helpers.state import CheckoutState


class CheckoutJourney(SequentialTaskSet):
    """Seed Products -> Browse -> Wishlist -> Add to Cart -> Checkout -> My Orders -> Return.

    Models an ordinary shopper; the admin seeding step stands in for a
    catalogue that already exists.
    """

    def on_start(self):
        self.state = CheckoutState(headers=customer_headers())

    @task
    def seed_products(self):
        for _ in range(2):
            with self.client.post(
                "/products",
                json=product_data(),
                headers=ADMIN_HEADERS,
                catch_response=True,
                name="POST /products",
            ) as resp:
                if resp.status_code == 201:
                    self.state.product_ids.append(resp.json()["product_id"])
                else:
                    resp.failure(f"Add product failed: {resp.status_code} - {extract_error_detail(resp)}")
                    self.interrupt()

    @task
    def browse(self):
        self.client.get("/products", name="GET /products")
        for product_id in self.state.product_ids:
            self.client.get(f"/products/{product_id}", name="GET /products/{id}")

    @task
    def save_favourite(self):
        product_id = random.choice(self.state.product_ids)
        with self.client.post(
            "/wishlist",
            json={"product_id": product_id},
            headers=self.state.headers,
            catch_response=True,
            name="POST /wishlist",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Save to wishlist failed: {resp.status_code} - {extract_error_detail(resp)}")
        self.client.get("/wishlist", headers=self.state.headers, name="GET /wishlist")

    @task
    def fill_cart(self):
        for product_id in self.state.product_ids:
            with self.client.post(
                "/cart/items",
                json={"product_id": product_id, "quantity": random.randint(1, 2)},
                headers=self.state.headers,
                catch_response=True,
                name="POST /cart/items",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Add to cart failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def checkout(self):
        with self.client.post(
            "/orders",
            json=place_order_data(self.state.product_ids),
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["id"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def my_orders(self):
        self.client.get("/orders", headers=self.state.headers, name="GET /orders")
        self.client.get(f"/orders/{self.state.order_id}", headers=self.state.headers, name="GET /orders/{id}")

    @task
    def maybe_return(self):
        if random.random() > 0.3:
            return
        product_id = random.choice(self.state.product_ids)
        with self.client.post(
            f"/orders/{self.state.order_id}/returns",
            json={"product_id": product_id},
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders/{id}/returns",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Return request failed: {resp.status_code} - {extract_error_detail(resp)}")
                return
        self.state.returned_product_id = product_id

        with self.client.put(
            f"/admin/orders/{self.state.order_id}/returns/{product_id}/approve",
            headers=ADMIN_HEADERS,
            catch_response=True,
            name="PUT /admin/orders/{id}/returns/{product_id}/approve",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Return approval failed: {resp.status_code} - {extract_error_detail(resp)}")
            elif not resp.json().get("restocked"):
                resp.failure("Return approved but the restock was deferred")

    @task
    def done(self):
        self.interrupt()


class CheckoutUser(HttpUser):
    """Ordinary shoppers checking out their own products."""

    wait_time = between(1.0, 3.0)
    tasks = [CheckoutJourney]


class FlashSaleUser(HttpUser):
    """Many customers racing for the last units of one product.

    Every user shares the product created by the first user to start. A
    rejected checkout is expected once the stock is gone; anything other than
    an out-of-stock rejection counts as a failure. Stock must never go
    negative, which the periodic stock check asserts.
    """

    wait_time = between(0.1, 0.5)
    flash_product_id: str | None = None
    flash_stock = 50

    def on_start(self):
        self.headers = customer_headers()
        if FlashSaleUser.flash_product_id is None:
            resp = self.client.post(
                "/products",
                json=product_data(stock=self.flash_stock),
                headers=ADMIN_HEADERS,
                name="POST /products (flash sale)",
            )
            if resp.status_code == 201:
                FlashSaleUser.flash_product_id = resp.json()["product_id"]

    @task(5)
    def grab(self):
        if FlashSaleUser.flash_product_id is None:
            return
        payload = place_order_data([FlashSaleUser.flash_product_id], max_quantity=2)
        with self.client.post(
            "/orders",
            json=payload,
            headers=self.headers,
            catch_response=True,
            name="POST /orders (flash sale)",
        ) as resp:
            if resp.status_code == 201 or is_stock_conflict(resp):
                resp.success()
            else:
                resp.failure(f"Unexpected checkout failure: {resp.status_code} - {extract_error_detail(resp)}")

    @task(1)
    def check_stock(self):
        if FlashSaleUser.flash_product_id is None:
            return
        with self.client.get(
            f"/products/{FlashSaleUser.flash_product_id}",
            catch_response=True,
            name="GET /products/{id} (flash sale)",
        ) as resp:
            if resp.status_code == 200 and resp.json()["stock"] < 0:
                resp.failure(f"Stock went negative: {resp.json()['stock']}")
