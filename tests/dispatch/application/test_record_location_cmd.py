"""Application tests for RecordLocation and the integrity gate."""

from datetime import UTC, datetime, timedelta

import pytest
from dispatch.exceptions import ImplausibleSpeed, SubjectNotFound, TooFrequent
from dispatch.location.recording import RecordLocation
from dispatch.location.sample import LocationSample
from dispatch.partner.partner import Partner
from protean import current_domain


def _record(subject_id, latitude, longitude, recorded_at=None, **details):
    return current_domain.process(
        RecordLocation(
            subject_id=subject_id,
            latitude=latitude,
            longitude=longitude,
            recorded_at=recorded_at,
            **details,
        ),
        asynchronous=False,
    )


def _samples(subject_id):
    return current_domain.repository_for(LocationSample)._dao.query.filter(subject_id=subject_id).all().items


class TestRecordLocation:
    def test_unknown_subject(self):
        with pytest.raises(SubjectNotFound):
            _record("stranger", 12.9, 77.6)

    def test_partner_fix_moves_partner(self, register_partner):
        register_partner("partner-001")
        sample_id = _record("partner-001", 12.90, 77.58, accuracy=8.0, battery_level=80, is_online=True)

        assert sample_id
        partner = current_domain.repository_for(Partner).get("partner-001")
        assert partner.last_location.latitude == 12.90
        assert partner.last_location.longitude == 77.58
        assert partner.is_online is True

    def test_customer_fix_is_stored_but_not_indexed(self, customers):
        _record("cust-001", 12.93, 77.61)
        assert len(_samples("cust-001")) == 1

    def test_too_frequent_update_is_dropped(self, register_partner):
        register_partner("partner-001")
        start = datetime.now(UTC) - timedelta(minutes=5)
        _record("partner-001", 12.90, 77.58, recorded_at=start)

        with pytest.raises(TooFrequent):
            _record("partner-001", 12.9001, 77.5801, recorded_at=start + timedelta(seconds=2))
        assert len(_samples("partner-001")) == 1

    def test_teleport_is_dropped(self, register_partner):
        register_partner("partner-001")
        start = datetime.now(UTC) - timedelta(minutes=5)
        _record("partner-001", 12.90, 77.58, recorded_at=start)

        with pytest.raises(ImplausibleSpeed):
            _record("partner-001", 13.90, 77.58, recorded_at=start + timedelta(seconds=30))

        partner = current_domain.repository_for(Partner).get("partner-001")
        assert partner.last_location.latitude == 12.90

    def test_plausible_movement_is_accepted(self, register_partner):
        register_partner("partner-001")
        start = datetime.now(UTC) - timedelta(minutes=5)
        _record("partner-001", 12.90, 77.58, recorded_at=start)
        _record("partner-001", 12.905, 77.58, recorded_at=start + timedelta(seconds=60))
        assert len(_samples("partner-001")) == 2

    def test_future_timestamps_are_clamped(self, register_partner):
        register_partner("partner-001")
        before = datetime.now(UTC)
        _record("partner-001", 12.90, 77.58, recorded_at=before + timedelta(hours=2))

        [sample] = _samples("partner-001")
        recorded_at = sample.recorded_at
        if recorded_at.tzinfo is None:
            recorded_at = recorded_at.replace(tzinfo=UTC)
        assert recorded_at <= datetime.now(UTC)

    def test_naive_timestamps_are_treated_as_utc(self, register_partner):
        register_partner("partner-001")
        naive = (datetime.now(UTC) - timedelta(minutes=5)).replace(tzinfo=None)
        _record("partner-001", 12.90, 77.58, recorded_at=naive)
        with pytest.raises(TooFrequent):
            _record("partner-001", 12.90, 77.58, recorded_at=(naive + timedelta(seconds=1)).replace(tzinfo=UTC))
