"""Repository-backed partner index."""

from datetime import UTC, datetime

from dispatch.geo.point import GeoPoint
from dispatch.partner.management import SetPartnerOnline
from dispatch.partner_index import get_partner_index
from protean import current_domain


class TestRepositoryPartnerIndex:
    def test_nearby_is_sorted_by_distance(self, register_partner):
        register_partner("partner-far", latitude=12.95, longitude=77.58)
        register_partner("partner-near", latitude=12.905, longitude=77.58)
        register_partner("partner-out", latitude=13.50, longitude=77.58)

        found = get_partner_index().nearby(12.90, 77.58, 10)
        assert [entry.partner_id for entry in found] == ["partner-near", "partner-far"]
        assert found[0].distance_km < found[1].distance_km

    def test_offline_partners_are_hidden(self, register_partner):
        register_partner("partner-001", latitude=12.90, longitude=77.58)
        current_domain.process(SetPartnerOnline(partner_id="partner-001", is_online=False), asynchronous=False)
        assert get_partner_index().nearby(12.90, 77.58, 5) == []

    def test_partners_without_position_are_hidden(self, register_partner):
        register_partner("partner-001")
        current_domain.process(SetPartnerOnline(partner_id="partner-001", is_online=True), asynchronous=False)
        assert get_partner_index().nearby(12.90, 77.58, 5) == []

    def test_upsert_ignores_non_partners(self):
        point = GeoPoint(latitude=12.9, longitude=77.6)
        assert get_partner_index().upsert_location("cust-001", point, True, datetime.now(UTC)) is False
