"""Checkout load test scenarios.

Many shoppers race for a small stock of one hot SKU. A correct run ends with
exactly as many successful checkouts as there were units, and every other
attempt rejected with 409 insufficient_stock.
"""

import random
import uuid

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.helpers.response import extract_error_detail

HOT_SKU = "SKU-HOT"


class HotSkuCheckoutJourney(SequentialTaskSet):
    """Fill cart with the hot SKU -> Check out -> Read the order back."""

    def on_start(self):
        self.customer_id = f"load-{uuid.uuid4().hex[:12]}"
        self.order_id = None

    @task
    def add_to_cart(self):
        with self.client.post(
            f"/carts/{self.customer_id}/lines",
            json={"sku": HOT_SKU, "name": "Limited edition mug", "unit_price": "12.50", "quantity": random.randint(1, 2)},
            catch_response=True,
            name="POST /carts/{id}/lines",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Add to cart failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def checkout(self):
        with self.client.post(
            "/checkout",
            json={"customer_id": self.customer_id, "payment_token": "tok_visa"},
            catch_response=True,
            name="POST /checkout",
        ) as resp:
            if resp.status_code == 201:
                self.order_id = resp.json()["order_id"]
            elif resp.status_code == 409:
                # Sold out is an expected outcome under contention
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def view_order(self):
        with self.client.get(
            f"/orders/{self.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"View order failed: {resp.status_code} — {extract_error_detail(resp)}")
        self.interrupt()


class CheckoutUser(HttpUser):
    """Shopper competing for the hot SKU."""

    tasks = [HotSkuCheckoutJourney]
    wait_time = between(0.1, 0.5)
