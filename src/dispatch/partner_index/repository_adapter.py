"""Partner index backed by the Partner repository.

A bounding box narrows the scan before exact haversine distances are taken.
Good enough for a single-node deployment; a geo-capable store replaces this
adapter behind the same port.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from dispatch.geo.geomath import bounding_box, distance_km
from dispatch.partner.partner import Partner
from dispatch.partner_index.port import IndexedPartner, PartnerIndexPort
from dispatch.utils.query import iter_all

logger = structlog.get_logger(__name__)


class RepositoryPartnerIndex(PartnerIndexPort):
    @property
    def _repo(self):
        return current_domain.repository_for(Partner)

    def nearby(self, latitude: float, longitude: float, radius_km: float) -> list[IndexedPartner]:
        min_lat, min_lon, max_lat, max_lon = bounding_box(latitude, longitude, radius_km)
        found = []
        for partner in iter_all(self._repo._dao.query.filter(is_online=True)):
            point = partner.last_location
            if point is None:
                continue
            if not (min_lat <= point.latitude <= max_lat and min_lon <= point.longitude <= max_lon):
                continue
            distance = distance_km(latitude, longitude, point.latitude, point.longitude)
            if distance > radius_km:
                continue
            found.append(
                IndexedPartner(
                    partner_id=str(partner.id),
                    latitude=point.latitude,
                    longitude=point.longitude,
                    is_active=bool(partner.is_active),
                    is_available=bool(partner.is_available),
                    is_online=True,
                    rating=partner.rating or 0.0,
                    completed_deliveries=partner.completed_deliveries or 0,
                    ongoing_orders=partner.ongoing_orders or 0,
                    max_concurrent_orders=partner.max_concurrent_orders or 1,
                    distance_km=distance,
                    last_location_at=partner.last_location_at,
                )
            )
        found.sort(key=lambda entry: entry.distance_km)
        return found

    def upsert_location(self, subject_id: str, point, is_online: bool | None, at) -> bool:
        try:
            partner = self._repo.get(subject_id)
        except ObjectNotFoundError:
            return False
        partner.move_to(point, at, is_online=is_online)
        self._repo.add(partner)
        logger.debug("Partner index updated", partner_id=str(subject_id), is_online=partner.is_online)
        return True
