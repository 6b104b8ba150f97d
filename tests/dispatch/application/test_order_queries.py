"""Application tests for order read models."""

from datetime import UTC, datetime, timedelta

import pytest
from dispatch.exceptions import InvalidQuery, OrderNotFound
from dispatch.order import queries
from dispatch.order.cancellation import CancelOrder
from protean import current_domain


@pytest.fixture()
def orders(place_order, confirmed_order):
    """Two pending orders for cust-001, one for cust-002 and one confirmed."""
    pending = [place_order(), place_order(), place_order(customer_id="cust-002")]
    confirmed = confirmed_order()
    return {"pending": pending, "confirmed": confirmed}


class TestLookups:
    def test_get_order(self, orders):
        order = queries.get_order(orders["confirmed"])
        assert order.partner_id == "partner-001"

    def test_get_missing_order(self):
        with pytest.raises(OrderNotFound):
            queries.get_order("order-ghost")

    def test_get_by_number(self, orders):
        assert str(queries.get_order_by_number("ORD-000001").id) == orders["pending"][0]
        with pytest.raises(OrderNotFound):
            queries.get_order_by_number("ORD-999999")


class TestListings:
    def test_orders_for_customer(self, orders):
        page = queries.orders_for_customer("cust-001")
        assert page.total == 3
        assert queries.orders_for_customer("cust-001", status="Confirmed").total == 1

    def test_paging(self, orders):
        page = queries.orders_for_customer("cust-001", page=2, per_page=2)
        assert page.total == 3
        assert len(page.items) == 1
        assert page.pages == 2

    def test_orders_for_partner(self, orders):
        assert [str(o.id) for o in queries.orders_for_partner("partner-001").items] == [orders["confirmed"]]

    def test_available_orders_excludes_assigned(self, orders):
        page = queries.available_orders()
        assert {str(o.id) for o in page.items} == set(orders["pending"])

    def test_orders_by_status(self, orders):
        assert queries.orders_by_status("Pending").total == 3

    def test_unknown_status(self, orders):
        with pytest.raises(ValueError):
            queries.orders_by_status("Lost")

    def test_active_orders(self, orders):
        assert [str(o.id) for o in queries.active_orders()] == [orders["confirmed"]]
        assert queries.active_orders(partner_id="partner-999") == []

    def test_orders_in_range(self, orders):
        now = datetime.now(UTC)
        assert queries.orders_in_range(now - timedelta(hours=1), now + timedelta(hours=1)).total == 4
        with pytest.raises(InvalidQuery):
            queries.orders_in_range(now, now - timedelta(hours=1))


class TestSpatialAndStats:
    def test_orders_near(self, orders):
        assert len(queries.orders_near(12.90, 77.58, 1)) == 4
        assert queries.orders_near(13.50, 78.50, 1) == []

    @pytest.mark.parametrize("radius_km", [0, -1, 100.5, float("nan"), float("inf")])
    def test_orders_near_rejects_bad_radius(self, radius_km):
        with pytest.raises(InvalidQuery):
            queries.orders_near(12.90, 77.58, radius_km)

    def test_order_stats(self, orders):
        current_domain.process(CancelOrder(order_id=orders["pending"][0], reason="Duplicate"), asynchronous=False)
        stats = queries.order_stats()
        assert stats["total_orders"] == 4
        assert stats["status_breakdown"] == {"Pending": 2, "Cancelled": 1, "Confirmed": 1}
        assert stats["total_revenue"] == 0.0
