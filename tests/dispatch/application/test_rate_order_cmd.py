"""Application tests for ratings and their effect on the partner's reputation."""

import pytest
from dispatch.exceptions import InvalidState, Unauthorized
from dispatch.order.order import Order
from dispatch.order.rating import RateOrder
from dispatch.order.status import UpdateOrderStatus
from dispatch.order.verification import verify_delivery, verify_pickup
from dispatch.partner.partner import Partner
from protean import current_domain


def _rate(order_id, score, rating_type="Customer", **actor):
    current_domain.process(
        RateOrder(order_id=order_id, score=score, comment="Thanks", rating_type=rating_type, **actor),
        asynchronous=False,
    )


@pytest.fixture()
def delivered_order(confirmed_order, code_channel):
    def _make(partner_id="partner-001", customer_id="cust-001"):
        order_id = confirmed_order(partner_id=partner_id, customer_id=customer_id)
        verify_pickup(order_id, code_channel.last_code("Pickup"), partner_id)
        for status in ("In_Transit", "Out_For_Delivery"):
            current_domain.process(
                UpdateOrderStatus(order_id=order_id, new_status=status, actor_id=partner_id, actor_role="Partner"),
                asynchronous=False,
            )
        verify_delivery(order_id, code_channel.last_code("Delivery"), partner_id)
        return order_id

    return _make


class TestRateOrder:
    def test_customer_rating_updates_partner(self, delivered_order):
        order_id = delivered_order()
        _rate(order_id, 4, actor_id="cust-001", actor_role="Customer")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.customer_rating.score == 4
        partner = current_domain.repository_for(Partner).get("partner-001")
        assert partner.rating == 4.0
        assert partner.rating_count == 1
        assert partner.completed_deliveries == 1

    def test_partner_rating_leaves_partner_reputation_alone(self, delivered_order):
        order_id = delivered_order()
        _rate(order_id, 2, rating_type="Partner", actor_id="partner-001", actor_role="Partner")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.partner_rating.score == 2
        assert current_domain.repository_for(Partner).get("partner-001").rating_count == 0

    def test_rating_twice_is_refused(self, delivered_order):
        order_id = delivered_order()
        _rate(order_id, 5, actor_id="cust-001", actor_role="Customer")
        with pytest.raises(InvalidState):
            _rate(order_id, 1, actor_id="cust-001", actor_role="Customer")

    def test_undelivered_order_cannot_be_rated(self, confirmed_order):
        with pytest.raises(InvalidState):
            _rate(confirmed_order(), 5, actor_id="cust-001", actor_role="Customer")

    def test_only_the_owner_rates_the_partner(self, delivered_order):
        order_id = delivered_order()
        with pytest.raises(Unauthorized):
            _rate(order_id, 5, actor_id="cust-002", actor_role="Customer")
        with pytest.raises(Unauthorized):
            _rate(order_id, 5, actor_id="partner-001", actor_role="Partner")
