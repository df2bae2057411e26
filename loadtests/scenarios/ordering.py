"""Ordering load test scenarios.

``OrderingUser`` places ordinary orders across the catalogue and reads back
its history. ``HotProductUser`` hammers a single poster so that concurrent
placements race for the last units: once stock runs out every request must
be rejected as ``InsufficientStock``, never committed.
"""

import uuid

from locust import HttpUser, SequentialTaskSet, between, tag, task

from loadtests.data_generators import hot_order_data, order_data
from loadtests.helpers.response import error_kind, extract_error_detail
from loadtests.helpers.state import OrderState


class OrderPlacementJourney(SequentialTaskSet):
    """Place Order -> Fetch Order -> List History."""

    def on_start(self):
        self.state = OrderState()
        self.customer_id = f"cust-lt-{uuid.uuid4().hex[:8]}"

    @task
    def place_order(self):
        with self.client.post(
            "/orders",
            json=order_data(),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["order"]["order_id"])
            elif error_kind(resp) == "InsufficientStock":
                self.state.rejected += 1
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Place order failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def get_order(self):
        order_id = self.state.order_ids[-1]
        with self.client.get(f"/orders/{order_id}", catch_response=True, name="GET /orders/{id}") as resp:
            if resp.status_code != 200:
                resp.failure(f"Get order failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def list_history(self):
        with self.client.get(
            "/orders",
            params={"customer_id": self.customer_id, "page": 1, "limit": 10},
            catch_response=True,
            name="GET /orders?customer_id",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List orders failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class OrderingUser(HttpUser):
    """Customers placing ordinary orders."""

    tasks = [OrderPlacementJourney]
    wait_time = between(1, 3)
    weight = 3


class HotProductUser(HttpUser):
    """Customers racing for one scarce poster."""

    wait_time = between(0.05, 0.2)
    weight = 1

    @tag("contention")
    @task
    def grab_hot_product(self):
        with self.client.post(
            "/orders",
            json=hot_order_data(),
            catch_response=True,
            name="POST /orders [hot]",
        ) as resp:
            if resp.status_code == 201 or error_kind(resp) == "InsufficientStock":
                resp.success()
            else:
                resp.failure(f"Hot order failed: {resp.status_code} - {extract_error_detail(resp)}")
