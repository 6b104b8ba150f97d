"""Tests for the Partner aggregate: eligibility, workload and reputation."""

import pytest
from dispatch.exceptions import PartnerIneligible
from dispatch.partner.events import PartnerRated, PartnerRegistered, PartnerStatusChanged
from dispatch.partner.partner import Partner
from protean.exceptions import ValidationError


def _partner(**kwargs):
    partner = Partner.register(name="Ravi Kumar", partner_id="partner-001", **kwargs)
    partner._events.clear()
    return partner


class TestRegistration:
    def test_register_defaults(self):
        partner = Partner.register(name="Ravi Kumar", phone="+91-98450-00000")
        assert partner.is_active is True
        assert partner.is_available is False
        assert partner.is_online is False
        assert partner.rating == 0.0
        assert partner.ongoing_orders == 0
        assert isinstance(partner._events[-1], PartnerRegistered)

    def test_register_with_explicit_id(self):
        assert str(_partner().id) == "partner-001"


class TestEligibility:
    def test_new_partner_is_not_eligible_until_available(self):
        partner = _partner()
        assert not partner.is_eligible
        partner.set_available(True)
        assert partner.is_eligible
        assert isinstance(partner._events[-1], PartnerStatusChanged)

    def test_inactive_partner_cannot_become_available(self):
        partner = _partner()
        partner.set_active(False)
        with pytest.raises(ValidationError):
            partner.set_available(True)

    def test_deactivation_clears_availability(self):
        partner = _partner()
        partner.set_available(True)
        partner.set_active(False)
        assert partner.is_available is False
        assert not partner.is_eligible


class TestWorkload:
    def test_start_order_books_capacity(self):
        partner = _partner(max_concurrent_orders=2)
        partner.start_order()
        assert partner.ongoing_orders == 1
        assert partner.has_capacity

    def test_full_partner_is_ineligible(self):
        partner = _partner(max_concurrent_orders=1)
        partner.set_available(True)
        partner.start_order()
        assert not partner.is_eligible
        with pytest.raises(PartnerIneligible):
            partner.start_order()

    def test_inactive_partner_cannot_start(self):
        partner = _partner()
        partner.set_active(False)
        with pytest.raises(PartnerIneligible):
            partner.start_order()

    def test_finish_order_counts_outcome(self):
        partner = _partner(max_concurrent_orders=3)
        partner.start_order()
        partner.start_order()
        partner.finish_order(delivered=True)
        partner.finish_order(delivered=False)
        assert partner.ongoing_orders == 0
        assert partner.completed_deliveries == 1
        assert partner.cancelled_orders == 1

    def test_workload_never_goes_negative(self):
        partner = _partner()
        partner.finish_order(delivered=False)
        assert partner.ongoing_orders == 0


class TestRating:
    def test_running_mean(self):
        partner = _partner()
        partner.record_rating(5, order_id="order-1")
        partner.record_rating(4, order_id="order-2")
        assert partner.rating == 4.5
        partner.record_rating(4, order_id="order-3")
        assert partner.rating == 4.33
        assert partner.rating_count == 3
        assert isinstance(partner._events[-1], PartnerRated)

    def test_score_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            _partner().record_rating(6, order_id="order-1")
