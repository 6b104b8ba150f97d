"""Tests for the GPS plausibility checks."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest
from dispatch.config import LocationSettings
from dispatch.exceptions import ImplausibleSpeed, LocationRejected, TooFrequent
from dispatch.location.integrity import LocationIntegrityValidator

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _fix(latitude, longitude, seconds=0):
    return SimpleNamespace(latitude=latitude, longitude=longitude, recorded_at=T0 + timedelta(seconds=seconds))


@pytest.fixture()
def validator():
    return LocationIntegrityValidator(LocationSettings())


class TestAcceptance:
    def test_first_fix_is_always_accepted(self, validator):
        assert validator.validate(None, _fix(12.9, 77.6)).accepted

    def test_one_km_in_a_minute_is_accepted(self, validator):
        # 0.009 degrees of latitude is ~1 km
        verdict = validator.validate(_fix(12.900, 77.6), _fix(12.909, 77.6, seconds=60))
        assert verdict.accepted
        assert verdict.distance_km == pytest.approx(1.0, abs=0.01)
        assert verdict.max_distance_km == pytest.approx(2.0)

    def test_standing_still_is_accepted(self, validator):
        assert validator.validate(_fix(12.9, 77.6), _fix(12.9, 77.6, seconds=5)).accepted


class TestRejection:
    def test_five_hundred_km_in_one_second_is_rejected(self, validator):
        with pytest.raises(LocationRejected):
            validator.validate(_fix(12.9, 77.6), _fix(17.4, 78.5, seconds=1))

    def test_updates_closer_than_interval_are_too_frequent(self, validator):
        with pytest.raises(TooFrequent):
            validator.validate(_fix(12.9, 77.6), _fix(12.9, 77.6, seconds=4))

    def test_out_of_order_timestamps_are_too_frequent(self, validator):
        with pytest.raises(TooFrequent):
            validator.validate(_fix(12.9, 77.6, seconds=60), _fix(12.9, 77.6, seconds=0))

    def test_teleport_is_implausible(self, validator):
        # ~500 km in 10 s
        with pytest.raises(ImplausibleSpeed) as exc:
            validator.validate(_fix(12.9, 77.6), _fix(17.4, 78.5, seconds=10))
        assert exc.value.distance_km > 400
        assert exc.value.max_distance_km == pytest.approx(120 * 10 / 3600)

    def test_check_reports_without_raising(self, validator):
        verdict = validator.check(_fix(12.9, 77.6), _fix(12.95, 77.6, seconds=30))
        assert not verdict.accepted
        assert "km/h" in verdict.reason

    def test_speed_limit_is_configurable(self):
        lenient = LocationIntegrityValidator(LocationSettings(max_speed_kmh=1000.0))
        assert lenient.validate(_fix(12.9, 77.6), _fix(12.95, 77.6, seconds=30)).accepted
