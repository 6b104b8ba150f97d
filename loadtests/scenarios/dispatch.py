"""Dispatch load test scenarios.

Stateful SequentialTaskSet journeys covering partner onboarding into the
dispatch pool, order booking and automatic dispatch. Steps execute in order —
each depends on the previous step succeeding.

Handoff codes only reach the customer's device, so load journeys stop short
of pickup; the cancellation journey exercises the compensation path instead.
The server must run with CUSTOMER_DIRECTORY_ADAPTER=open so generated
customer ids are accepted.
"""

from locust import SequentialTaskSet, task

from loadtests.data_generators import (
    actor_headers,
    admin_headers,
    cancellation_reason,
    city_point,
    customer_id,
    location_data,
    order_data,
    partner_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState, PartnerState


class PartnerOnboardingJourney(SequentialTaskSet):
    """Register -> Go Available -> Report Position.

    Generates 3 events: PartnerRegistered, PartnerStatusChanged,
    LocationRecorded.
    """

    def on_start(self):
        self.state = PartnerState()

    @task
    def register(self):
        payload = partner_data()
        with self.client.post(
            "/partners",
            json=payload,
            headers=admin_headers(),
            catch_response=True,
            name="POST /partners",
        ) as resp:
            if resp.status_code == 201:
                self.state.partner_id = resp.json()["partner_id"]
            else:
                resp.failure(f"Partner registration failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def go_available(self):
        with self.client.put(
            f"/partners/{self.state.partner_id}/availability",
            json={"is_available": True},
            headers=actor_headers(self.state.partner_id, "Partner"),
            catch_response=True,
            name="PUT /partners/{id}/availability",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Availability failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def report_position(self):
        self.state.position = city_point()
        with self.client.post(
            "/locations",
            json=location_data(self.state.position),
            headers=actor_headers(self.state.partner_id, "Partner"),
            catch_response=True,
            name="POST /locations",
        ) as resp:
            if resp.status_code == 201:
                self.state.fixes_sent += 1
                self.state.is_online = True
            else:
                resp.failure(f"Location update failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class BookAndDispatchJourney(SequentialTaskSet):
    """Book -> View -> Dispatch -> Partner lists active orders.

    Generates 4+ events: OrderCreated, CodeIssued (x2), PartnerAssigned,
    OrderStatusChanged. Dispatch fails with 400 when no partner is online
    near the pickup, which is recorded as an expected outcome.
    """

    def on_start(self):
        self.state = OrderState(customer_id=customer_id())

    @task
    def book(self):
        with self.client.post(
            "/orders",
            json=order_data(),
            headers=actor_headers(self.state.customer_id, "Customer"),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["order_number"]
            else:
                resp.failure(f"Booking failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def view(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            headers=actor_headers(self.state.customer_id, "Customer"),
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"View failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def dispatch(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/dispatch",
            json={"radius_km": 15},
            headers=admin_headers(),
            catch_response=True,
            name="POST /orders/{id}/dispatch",
        ) as resp:
            if resp.status_code == 200:
                self.state.partner_id = resp.json()["partner_id"]
                self.state.current_status = "Confirmed"
            elif resp.status_code == 400:
                # No eligible partner nearby
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Dispatch failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def partner_lists_active(self):
        with self.client.get(
            "/orders/active",
            params={"partner_id": self.state.partner_id},
            headers=actor_headers(self.state.partner_id, "Partner"),
            catch_response=True,
            name="GET /orders/active",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Active orders failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class OrderCancellationJourney(SequentialTaskSet):
    """Book -> Record Payment -> Cancel.

    Generates OrderCreated, OrderCancelled and, because the order was paid,
    PaymentRefunded from the refund compensation.
    """

    def on_start(self):
        self.state = OrderState(customer_id=customer_id())

    @task
    def book(self):
        with self.client.post(
            "/orders",
            json=order_data(),
            headers=actor_headers(self.state.customer_id, "Customer"),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            else:
                resp.failure(f"Booking failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def pay(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/payment",
            json={"payment_status": "Completed"},
            headers=admin_headers(),
            catch_response=True,
            name="PUT /orders/{id}/payment",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Payment failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def cancel(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/cancel",
            json={"reason": cancellation_reason()},
            headers=actor_headers(self.state.customer_id, "Customer"),
            catch_response=True,
            name="POST /orders/{id}/cancel",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "Cancelled"
            else:
                resp.failure(f"Cancellation failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()
