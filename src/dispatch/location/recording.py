"""RecordLocation — accept a GPS fix after the integrity check.

Accepted fixes are persisted and pushed into the spatial partner index, which
also carries the partner's online flag. Rejected fixes leave no trace.
"""

from types import SimpleNamespace

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from dispatch.customers import get_customer_directory
from dispatch.domain import dispatch
from dispatch.exceptions import LocationRejected, SubjectNotFound
from dispatch.geo.point import GeoPoint
from dispatch.location.integrity import LocationIntegrityValidator
from dispatch.location.sample import LocationSample
from dispatch.partner.partner import Partner
from dispatch.partner_index import get_partner_index
from dispatch.utils.clock import as_utc, utcnow

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="LocationSample")
class RecordLocation:
    subject_id = Identifier(required=True)
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
    recorded_at = DateTime()  # Device time; never later than server time


def _is_known_subject(subject_id: str) -> bool:
    try:
        current_domain.repository_for(Partner).get(subject_id)
        return True
    except ObjectNotFoundError:
        return get_customer_directory().exists(subject_id)


@dispatch.command_handler(part_of=LocationSample)
class RecordLocationHandler:
    @handle(RecordLocation)
    def record_location(self, command):
        subject_id = str(command.subject_id)
        if not _is_known_subject(subject_id):
            raise SubjectNotFound(f"Unknown subject {subject_id}")

        now = utcnow()
        recorded_at = min(as_utc(command.recorded_at), now) if command.recorded_at else now

        repo = current_domain.repository_for(LocationSample)
        last = repo.latest_for(subject_id)
        if last is not None:
            last = SimpleNamespace(
                latitude=last.latitude, longitude=last.longitude, recorded_at=as_utc(last.recorded_at)
            )
        candidate = SimpleNamespace(latitude=command.latitude, longitude=command.longitude, recorded_at=recorded_at)

        try:
            LocationIntegrityValidator().validate(last, candidate)
        except LocationRejected as exc:
            logger.warning(
                "Location update rejected",
                subject_id=subject_id,
                reason=type(exc).__name__,
                detail=exc.message,
            )
            raise

        sample = LocationSample.record(
            subject_id=subject_id,
            latitude=command.latitude,
            longitude=command.longitude,
            recorded_at=recorded_at,
            accuracy=command.accuracy,
            heading=command.heading,
            speed=command.speed,
            battery_level=command.battery_level,
            network_type=command.network_type,
            address=command.address,
            is_online=command.is_online,
            order_id=command.order_id,
        )
        repo.add(sample)

        point = GeoPoint(latitude=command.latitude, longitude=command.longitude, accuracy=command.accuracy)
        indexed = get_partner_index().upsert_location(subject_id, point, command.is_online, recorded_at)

        logger.info("Location recorded", subject_id=subject_id, sample_id=str(sample.id), indexed=indexed)
        return str(sample.id)
