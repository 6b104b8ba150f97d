"""Application tests for manual assignment and automatic dispatch."""

import pytest
from dispatch.exceptions import (
    AlreadyAssigned,
    InvalidQuery,
    InvalidState,
    NoCandidate,
    OrderNotFound,
    PartnerIneligible,
    PartnerNotFound,
    Unauthorized,
)
from dispatch.order.assignment import AssignPartner, DispatchOrder
from dispatch.order.cancellation import CancelOrder
from dispatch.order.order import Order, OrderStatus
from dispatch.partner.partner import Partner
from protean import current_domain


def _assign(order_id, partner_id, **actor):
    return current_domain.process(AssignPartner(order_id=order_id, partner_id=partner_id, **actor), asynchronous=False)


def _dispatch(order_id, **kwargs):
    return current_domain.process(DispatchOrder(order_id=order_id, **kwargs), asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _partner(partner_id):
    return current_domain.repository_for(Partner).get(partner_id)


class TestAssignPartner:
    def test_assign_confirms_and_books_capacity(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-001")
        assert _assign(order_id, "partner-001") == "partner-001"

        order = _order(order_id)
        assert order.status == OrderStatus.CONFIRMED.value
        assert str(order.partner_id) == "partner-001"
        assert _partner("partner-001").ongoing_orders == 1

    def test_reassignment_fails(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-001")
        register_partner("partner-002")
        _assign(order_id, "partner-001")
        with pytest.raises(AlreadyAssigned):
            _assign(order_id, "partner-002")
        assert str(_order(order_id).partner_id) == "partner-001"
        assert _partner("partner-002").ongoing_orders == 0

    def test_partner_may_accept_for_themselves(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-001")
        _assign(order_id, "partner-001", actor_id="partner-001", actor_role="Partner")
        change = next(c for c in _order(order_id).status_history if c.to_status == OrderStatus.CONFIRMED.value)
        assert change.changed_by == "Partner:partner-001"

    def test_partner_cannot_assign_someone_else(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-002")
        with pytest.raises(Unauthorized):
            _assign(order_id, "partner-002", actor_id="partner-001", actor_role="Partner")

    def test_partner_at_capacity_is_refused(self, place_order, register_partner):
        first, second = place_order(), place_order()
        register_partner("partner-001", max_concurrent_orders=1)
        _assign(first, "partner-001")
        with pytest.raises(PartnerIneligible):
            _assign(second, "partner-001")
        assert _order(second).status == OrderStatus.PENDING.value

    def test_unknown_partner(self, place_order):
        with pytest.raises(PartnerNotFound):
            _assign(place_order(), "partner-ghost")

    def test_unknown_order(self, register_partner):
        register_partner("partner-001")
        with pytest.raises(OrderNotFound):
            _assign("order-ghost", "partner-001")

    def test_cancelled_order_cannot_be_assigned(self, place_order, register_partner):
        order_id = place_order()
        current_domain.process(CancelOrder(order_id=order_id, reason="Changed my mind"), asynchronous=False)
        register_partner("partner-001")
        with pytest.raises(InvalidState) as exc:
            _assign(order_id, "partner-001")
        assert "Cancelled" in str(exc.value)


class TestDispatchOrder:
    def test_dispatch_picks_the_nearest_partner(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-far", latitude=12.95, longitude=77.58)
        register_partner("partner-near", latitude=12.905, longitude=77.585)

        assert _dispatch(order_id) == "partner-near"
        assert str(_order(order_id).partner_id) == "partner-near"
        assert _partner("partner-near").ongoing_orders == 1

    def test_unavailable_partners_are_skipped(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-near", available=False, latitude=12.905, longitude=77.585)
        register_partner("partner-far", latitude=12.95, longitude=77.58)
        assert _dispatch(order_id) == "partner-far"

    def test_no_partner_in_radius(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-001", latitude=13.30, longitude=77.58)
        with pytest.raises(NoCandidate):
            _dispatch(order_id, radius_km=5.0)
        assert _order(order_id).status == OrderStatus.PENDING.value

    def test_radius_out_of_range(self, place_order):
        with pytest.raises(InvalidQuery):
            _dispatch(place_order(), radius_km=500.0)

    def test_only_admins_dispatch(self, place_order, register_partner):
        order_id = place_order()
        register_partner("partner-001", latitude=12.905, longitude=77.585)
        with pytest.raises(Unauthorized):
            _dispatch(order_id, actor_id="cust-001", actor_role="Customer")

    def test_assigned_order_is_not_dispatched_again(self, confirmed_order, register_partner):
        order_id = confirmed_order()
        register_partner("partner-002", latitude=12.905, longitude=77.585)
        with pytest.raises(AlreadyAssigned):
            _dispatch(order_id)
