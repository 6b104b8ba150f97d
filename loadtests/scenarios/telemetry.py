"""Telemetry load scenarios — partners streaming GPS fixes.

Fixes must be at least 5 s apart and move at a plausible speed, so each
simulated device paces itself and drifts a short distance between reports.
"""

from locust import HttpUser, between, constant_pacing, task

from loadtests.data_generators import (
    actor_headers,
    admin_headers,
    city_point,
    location_data,
    nudge,
    partner_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import PartnerState


class PartnerDeviceUser(HttpUser):
    """One online partner device reporting its position every ~6 s."""

    wait_time = constant_pacing(6)

    def on_start(self):
        self.state = PartnerState()
        payload = partner_data()
        resp = self.client.post("/partners", json=payload, headers=admin_headers(), name="POST /partners")
        if resp.status_code != 201:
            self.stop()
            return
        self.state.partner_id = resp.json()["partner_id"]
        self.state.position = city_point()
        self.client.put(
            f"/partners/{self.state.partner_id}/availability",
            json={"is_available": True},
            headers=self._headers(),
            name="PUT /partners/{id}/availability",
        )

    def _headers(self) -> dict:
        return actor_headers(self.state.partner_id, "Partner")

    @task(10)
    def report_fix(self):
        self.state.position = nudge(self.state.position)
        with self.client.post(
            "/locations",
            json=location_data(self.state.position),
            headers=self._headers(),
            catch_response=True,
            name="POST /locations",
        ) as resp:
            if resp.status_code == 201:
                self.state.fixes_sent += 1
            else:
                resp.failure(f"Fix rejected: {resp.status_code} — {extract_error_detail(resp)}")

    @task(1)
    def check_movement(self):
        with self.client.get(
            f"/locations/{self.state.partner_id}/movement",
            headers=self._headers(),
            catch_response=True,
            name="GET /locations/{id}/movement",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Movement stats failed: {resp.status_code} — {extract_error_detail(resp)}")


class OperationsDashboardUser(HttpUser):
    """Dispatch operator polling the read-side views."""

    wait_time = between(2, 5)

    @task(3)
    def nearby_partners(self):
        point = city_point()
        self.client.get(
            "/partners/nearby",
            params={**point, "radius_km": 10},
            headers=admin_headers(),
            name="GET /partners/nearby",
        )

    @task(2)
    def heatmap(self):
        self.client.get(
            "/locations/heatmap",
            params={"min_lat": 12.90, "min_lon": 77.52, "max_lat": 13.04, "max_lon": 77.66},
            headers=admin_headers(),
            name="GET /locations/heatmap",
        )

    @task(1)
    def order_stats(self):
        self.client.get("/orders/stats", headers=admin_headers(), name="GET /orders/stats")

    @task(1)
    def available_orders(self):
        self.client.get("/orders/available", headers=admin_headers(), name="GET /orders/available")
