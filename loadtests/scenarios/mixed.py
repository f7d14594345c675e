"""Mixed storefront workload scenario.

Combines the checkout and delivery journeys with an admin dashboard poller,
weighted to model ordinary storefront traffic. This is the recommended
scenario for load baseline testing.
"""

from locust import HttpUser, TaskSet, between, task

from loadtests.data_generators import ADMIN_HEADERS
from loadtests.scenarios.checkout import CheckoutJourney
from loadtests.scenarios.delivery import DeliveryJourney


class AdminDashboardPoller(TaskSet):
    """An admin refreshing analytics and the order list."""

    @task(3)
    def analytics(self):
        self.client.get("/admin/analytics", headers=ADMIN_HEADERS, name="GET /admin/analytics")

    @task(2)
    def revenue(self):
        self.client.get(
            "/admin/analytics/revenue?period=week",
            headers=ADMIN_HEADERS,
            name="GET /admin/analytics/revenue",
        )

    @task(1)
    def orders(self):
        self.client.get("/admin/orders", headers=ADMIN_HEADERS, name="GET /admin/orders")

    @task(1)
    def reconcile(self):
        self.client.post("/admin/returns/reconcile", headers=ADMIN_HEADERS, name="POST /admin/returns/reconcile")

    @task(1)
    def stop(self):
        self.interrupt()


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    Checkout (60%): shoppers placing orders and occasionally returning items.
    Delivery (30%): orders travelling through the station network.
    Admin (10%): dashboard and reconciliation polling.
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        CheckoutJourney: 6,
        DeliveryJourney: 3,
        AdminDashboardPoller: 1,
    }
