"""Application tests for location read models."""

from datetime import UTC, datetime, timedelta

import pytest
from dispatch.exceptions import InvalidQuery, LocationNotFound
from dispatch.location import queries
from dispatch.location.recording import RecordLocation
from protean import current_domain


@pytest.fixture()
def trail(register_partner):
    """Three fixes one minute apart, heading north."""
    register_partner("partner-001")
    start = datetime.now(UTC) - timedelta(minutes=30)
    points = [(12.900, 77.580, 20.0), (12.905, 77.580, 30.0), (12.910, 77.580, 25.0)]
    for minute, (lat, lon, speed) in enumerate(points):
        current_domain.process(
            RecordLocation(
                subject_id="partner-001",
                latitude=lat,
                longitude=lon,
                speed=speed,
                accuracy=5.0,
                battery_level=70,
                network_type="4G",
                order_id="order-1",
                recorded_at=start + timedelta(minutes=minute),
            ),
            asynchronous=False,
        )
    return start


class TestLatestAndHistory:
    def test_latest(self, trail):
        assert queries.latest_location("partner-001").latitude == 12.910

    def test_latest_unknown(self):
        with pytest.raises(LocationNotFound):
            queries.latest_location("nobody")

    def test_history_newest_first(self, trail):
        page = queries.location_history("partner-001", per_page=2)
        assert page.total == 3
        assert [s.latitude for s in page.items] == [12.910, 12.905]

    def test_history_window(self, trail):
        page = queries.location_history("partner-001", start=trail + timedelta(seconds=30))
        assert page.total == 2

    def test_order_tracking_oldest_first(self, trail):
        assert [s.latitude for s in queries.order_tracking("order-1")] == [12.900, 12.905, 12.910]


class TestAggregates:
    def test_movement_stats(self, trail):
        stats = queries.movement_stats("partner-001")
        assert stats["total_updates"] == 3
        assert stats["average_speed"] == pytest.approx(25.0)
        assert stats["max_speed"] == 30.0
        assert stats["total_distance_km"] == pytest.approx(1.112, abs=0.01)

    def test_movement_stats_without_samples(self):
        stats = queries.movement_stats("nobody")
        assert stats["total_updates"] == 0
        assert stats["total_distance_km"] == 0

    def test_heatmap(self, trail):
        cells = queries.heatmap(12.8, 77.5, 13.0, 77.7)
        assert sum(cell["weight"] for cell in cells) == 3

    def test_heatmap_rejects_reversed_box(self):
        with pytest.raises(InvalidQuery):
            queries.heatmap(13.0, 77.5, 12.8, 77.7)

    def test_analytics(self, trail):
        analytics = queries.location_analytics()
        assert analytics["total_updates"] == 3
        assert analytics["unique_subjects"] == 1
        assert analytics["online_percentage"] == 100.0
        assert analytics["network_types"] == {"4G": 3}
