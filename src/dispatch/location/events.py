"""Location events."""

from protean.fields import Boolean, DateTime, Float, Identifier

from dispatch.domain import dispatch


@dispatch.event(part_of="LocationSample")
class LocationRecorded:
    __version__ = 1

    sample_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)
    is_online = Boolean()
    order_id = Identifier()
    recorded_at = DateTime(required=True)
