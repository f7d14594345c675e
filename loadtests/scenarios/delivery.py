"""Delivery network load test scenarios.

One stateful SequentialTaskSet that builds a small station network for a
city, places an order there and drives it through planning, every journey
stage, agent assignment, the agent's hand-off steps and tracking polls.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    ADMIN_HEADERS,
    CITIES,
    agent_data,
    agent_headers,
    customer_headers,
    location_data,
    place_order_data,
    product_data,
    station_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import DeliveryState


class DeliveryJourney(SequentialTaskSet):
    """Stations -> Agent -> Order -> Plan -> Advance -> Assign -> Pickup -> Start -> Complete."""

    def on_start(self):
        self.state = DeliveryState(city=random.choice(CITIES))
        self.customer = customer_headers()

    def _register_station(self, station_type):
        with self.client.post(
            "/delivery/stations",
            json=station_data(station_type, self.state.city),
            headers=ADMIN_HEADERS,
            catch_response=True,
            name="POST /delivery/stations",
        ) as resp:
            if resp.status_code == 201:
                self.state.station_ids[station_type] = resp.json()["station_id"]
            else:
                resp.failure(f"Register station failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    def _agent_step(self, step, expected, json=None):
        with self.client.put(
            f"/delivery/orders/{self.state.order_id}/{step}",
            json=json,
            headers=agent_headers(self.state.agent_id),
            catch_response=True,
            name=f"PUT /delivery/orders/{{id}}/{step}",
        ) as resp:
            if resp.status_code == 200 and resp.json()["status"] == expected:
                self.state.current_status = expected
            else:
                resp.failure(f"Agent {step} failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def build_network(self):
        self._register_station("fulfillment_center")
        if random.random() < 0.5:
            self._register_station("regional_hub")
        self._register_station("local_station")

    @task
    def register_agent(self):
        with self.client.post(
            "/delivery/agents",
            json=agent_data(self.state.station_ids["local_station"]),
            catch_response=True,
            name="POST /delivery/agents",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Register agent failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()
            self.state.agent_id = resp.json()["agent_id"]

        self.client.put(
            "/delivery/agents/location",
            json=location_data(),
            headers=agent_headers(self.state.agent_id),
            name="PUT /delivery/agents/location",
        )

    @task
    def place_order(self):
        resp = self.client.post("/products", json=product_data(), headers=ADMIN_HEADERS, name="POST /products")
        self.state.product_id = resp.json()["product_id"]
        with self.client.post(
            "/orders",
            json=place_order_data([self.state.product_id], city=self.state.city),
            headers=self.customer,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["id"]
            else:
                resp.failure(f"Place order failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def plan_journey(self):
        with self.client.post(
            f"/delivery/orders/{self.state.order_id}/plan",
            headers=ADMIN_HEADERS,
            catch_response=True,
            name="POST /delivery/orders/{id}/plan",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Plan journey failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def advance_to_agent_assignment(self):
        while self.state.current_status != "waiting_for_agent":
            with self.client.put(
                f"/delivery/orders/{self.state.order_id}/advance",
                headers=ADMIN_HEADERS,
                catch_response=True,
                name="PUT /delivery/orders/{id}/advance",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Advance stage failed: {resp.status_code} - {extract_error_detail(resp)}")
                    self.interrupt()
                self.state.current_status = resp.json()["order_status"]
            self.client.get(f"/delivery/track/{self.state.order_id}", name="GET /delivery/track/{id}")

    @task
    def assign_agent(self):
        with self.client.post(
            f"/delivery/orders/{self.state.order_id}/assign-agent",
            headers=ADMIN_HEADERS,
            catch_response=True,
            name="POST /delivery/orders/{id}/assign-agent",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Assign agent failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def hand_off(self):
        self._agent_step("pickup", "picked_up")
        self._agent_step("start", "on_the_way")
        for _ in range(random.randint(1, 3)):
            self.client.put(
                "/delivery/agents/location",
                json=location_data(),
                headers=agent_headers(self.state.agent_id),
                name="PUT /delivery/agents/location",
            )
            self.client.get(f"/delivery/track/{self.state.order_id}", name="GET /delivery/track/{id}")
        self._agent_step("complete", "delivered", json={"delivery_proof": "doorstep-photo.jpg"})

    @task
    def done(self):
        self.interrupt()


class DeliveryUser(HttpUser):
    wait_time = between(0.5, 2.0)
    tasks = [DeliveryJourney]
