"""LocationSample aggregate — one accepted GPS fix of a partner or customer."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from dispatch.domain import dispatch
from dispatch.location.events import LocationRecorded


@dispatch.aggregate
class LocationSample:
    subject_id = Identifier(required=True)
    recorded_at = DateTime(required=True)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    accuracy = Float(min_value=0.0)
    heading = Float(min_value=0.0, max_value=360.0)
    speed = Float(min_value=0.0)
    battery_level = Integer(min_value=0, max_value=100)
    network_type = String(max_length=20)
    address = String(max_length=500)
    is_online = Boolean(default=True)
    order_id = Identifier()

    @classmethod
    def record(cls, subject_id, latitude, longitude, recorded_at, **details):
        sample = cls(
            subject_id=str(subject_id),
            latitude=latitude,
            longitude=longitude,
            recorded_at=recorded_at,
            **details,
        )
        sample.raise_(
            LocationRecorded(
                sample_id=str(sample.id),
                subject_id=str(subject_id),
                latitude=latitude,
                longitude=longitude,
                is_online=sample.is_online,
                order_id=sample.order_id,
                recorded_at=recorded_at,
            )
        )
        return sample
