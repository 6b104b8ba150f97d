"""PartnerMatcher ranking against an in-memory partner index."""

import pytest
from dispatch.exceptions import InvalidQuery, NoCandidate
from dispatch.matching.matcher import PartnerMatcher
from dispatch.partner_index.port import IndexedPartner, PartnerIndexPort


class _Point:
    def __init__(self, latitude, longitude):
        self.latitude = latitude
        self.longitude = longitude


PICKUP = _Point(12.90, 77.58)
DROPOFF = _Point(12.93, 77.61)


class StaticPartnerIndex(PartnerIndexPort):
    def __init__(self, *entries):
        self.entries = list(entries)
        self.queries = []

    def nearby(self, latitude, longitude, radius_km):
        self.queries.append((latitude, longitude, radius_km))
        return list(self.entries)

    def upsert_location(self, subject_id, point, is_online, at):
        return False


def _entry(partner_id, latitude=12.90, longitude=77.58, rating=4.0, completed=100, **flags):
    return IndexedPartner(
        partner_id=partner_id,
        latitude=latitude,
        longitude=longitude,
        is_active=flags.get("is_active", True),
        is_available=flags.get("is_available", True),
        is_online=True,
        rating=rating,
        completed_deliveries=completed,
        ongoing_orders=flags.get("ongoing_orders", 0),
        max_concurrent_orders=1,
    )


class TestScore:
    def test_score_formula(self):
        assert PartnerMatcher(index=StaticPartnerIndex()).score(1.0, 2.0, 4.0, 50) == pytest.approx(2.35)

    def test_experience_term_floors_at_zero(self):
        matcher = PartnerMatcher(index=StaticPartnerIndex())
        assert matcher.score(0.0, 0.0, 5.0, 500) == pytest.approx(0.0)


class TestRankForDelivery:
    def test_higher_rating_wins_at_equal_distance(self):
        index = StaticPartnerIndex(_entry("p-low", rating=3.5), _entry("p-high", rating=4.8))
        ranked = PartnerMatcher(index=index).rank_for_delivery(PICKUP, DROPOFF)
        assert [c.partner_id for c in ranked] == ["p-high", "p-low"]

    def test_sorted_ascending_by_score(self):
        index = StaticPartnerIndex(
            _entry("far", latitude=12.95, longitude=77.55),
            _entry("near", latitude=12.901, longitude=77.581),
            _entry("middle", latitude=12.92, longitude=77.58),
        )
        ranked = PartnerMatcher(index=index).rank_for_delivery(PICKUP, DROPOFF)
        scores = [c.score for c in ranked]
        assert scores == sorted(scores)
        assert ranked[0].partner_id == "near"

    def test_ineligible_partners_are_skipped(self):
        index = StaticPartnerIndex(
            _entry("busy", ongoing_orders=1),
            _entry("off", is_available=False),
            _entry("ready", latitude=12.91),
        )
        ranked = PartnerMatcher(index=index).rank_for_delivery(PICKUP, DROPOFF)
        assert [c.partner_id for c in ranked] == ["ready"]

    def test_no_candidate(self):
        with pytest.raises(NoCandidate):
            PartnerMatcher(index=StaticPartnerIndex(_entry("off", is_active=False))).rank_for_delivery(PICKUP, DROPOFF)

    def test_default_radius(self):
        index = StaticPartnerIndex(_entry("p-1"))
        PartnerMatcher(index=index).rank_for_delivery(PICKUP, DROPOFF)
        assert index.queries == [(12.90, 77.58, 10.0)]

    @pytest.mark.parametrize("radius", [0, -5, 100.5, float("nan")])
    def test_radius_out_of_range(self, radius):
        with pytest.raises(InvalidQuery):
            PartnerMatcher(index=StaticPartnerIndex(_entry("p-1"))).rank_for_delivery(PICKUP, DROPOFF, radius)

    def test_bad_dropoff(self):
        with pytest.raises(InvalidQuery):
            PartnerMatcher(index=StaticPartnerIndex()).rank_for_delivery(PICKUP, _Point(95, 0))


class TestFindNearby:
    def test_reports_eligibility_and_distance(self):
        index = StaticPartnerIndex(_entry("off", latitude=12.91, is_available=False))
        [candidate] = PartnerMatcher(index=index).find_nearby(12.90, 77.58, 5)
        assert candidate.is_eligible is False
        assert candidate.pickup_distance_km == pytest.approx(1.112, abs=0.01)
        assert candidate.to_dict()["score"] is None
