"""PartnerMatcher — finds and ranks delivery partners for an order.

Score (lower is better)::

    w_distance × (pickup_km + dropoff_km)
    + w_rating × (max_rating − rating)
    + w_experience × max(0, experience_ceiling − completed_deliveries)

Ties keep the order in which the partner index returned the partners.
"""

import math
from dataclasses import dataclass, replace

import structlog

from dispatch.config import MatchWeights, settings
from dispatch.exceptions import InvalidQuery, NoCandidate
from dispatch.geo.geomath import distance_km, validate_coordinates
from dispatch.partner_index import get_partner_index

logger = structlog.get_logger(__name__)

MAX_SEARCH_RADIUS_KM = 100.0


@dataclass(frozen=True)
class PartnerCandidate:
    partner_id: str
    latitude: float
    longitude: float
    rating: float
    completed_deliveries: int
    is_active: bool
    is_available: bool
    has_capacity: bool
    pickup_distance_km: float
    dropoff_distance_km: float | None = None
    score: float | None = None

    @property
    def is_eligible(self) -> bool:
        return self.is_active and self.is_available and self.has_capacity

    def to_dict(self) -> dict:
        return {
            "partner_id": self.partner_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "rating": self.rating,
            "completed_deliveries": self.completed_deliveries,
            "is_eligible": self.is_eligible,
            "pickup_distance_km": round(self.pickup_distance_km, 3),
            "dropoff_distance_km": None if self.dropoff_distance_km is None else round(self.dropoff_distance_km, 3),
            "score": self.score,
        }


def check_point(latitude, longitude) -> None:
    try:
        validate_coordinates(latitude, longitude)
    except ValueError as exc:
        raise InvalidQuery(str(exc)) from exc


def check_radius(radius_km: float | None) -> float:
    """Return the radius to search with, defaulting when none is given."""
    radius_km = settings.default_search_radius_km if radius_km is None else radius_km
    if not math.isfinite(radius_km) or not 0 < radius_km <= MAX_SEARCH_RADIUS_KM:
        raise InvalidQuery(f"Search radius must be within (0, {MAX_SEARCH_RADIUS_KM:g}] km, got {radius_km!r}")
    return radius_km


class PartnerMatcher:
    def __init__(self, weights: MatchWeights | None = None, index=None):
        self.weights = weights or settings.matching
        self.index = index or get_partner_index()

    def find_nearby(self, latitude: float, longitude: float, radius_km: float | None = None) -> list[PartnerCandidate]:
        """Online partners within the radius, nearest first, with eligibility flags."""
        check_point(latitude, longitude)
        radius_km = check_radius(radius_km)
        return [
            PartnerCandidate(
                partner_id=entry.partner_id,
                latitude=entry.latitude,
                longitude=entry.longitude,
                rating=entry.rating,
                completed_deliveries=entry.completed_deliveries,
                is_active=entry.is_active,
                is_available=entry.is_available,
                has_capacity=entry.has_capacity,
                pickup_distance_km=distance_km(latitude, longitude, entry.latitude, entry.longitude),
            )
            for entry in self.index.nearby(latitude, longitude, radius_km)
        ]

    def score(self, pickup_km: float, dropoff_km: float, rating: float, completed: int) -> float:
        w = self.weights
        return (
            w.distance * (pickup_km + dropoff_km)
            + w.rating * (w.max_rating - (rating or 0.0))
            + w.experience * max(0, w.experience_ceiling - (completed or 0))
        )

    def rank_for_delivery(self, pickup, dropoff, radius_km: float | None = None) -> list[PartnerCandidate]:
        """Eligible partners near ``pickup`` ordered best first.

        ``pickup`` and ``dropoff`` expose ``latitude``/``longitude``.

        Raises:
            InvalidQuery: coordinates or radius out of range.
            NoCandidate: nobody eligible within the radius.
        """
        check_point(dropoff.latitude, dropoff.longitude)
        nearby = self.find_nearby(pickup.latitude, pickup.longitude, radius_km)

        ranked = []
        for candidate in nearby:
            if not candidate.is_eligible:
                continue
            to_dropoff = distance_km(candidate.latitude, candidate.longitude, dropoff.latitude, dropoff.longitude)
            ranked.append(
                replace(
                    candidate,
                    dropoff_distance_km=to_dropoff,
                    score=self.score(
                        candidate.pickup_distance_km, to_dropoff, candidate.rating, candidate.completed_deliveries
                    ),
                )
            )

        if not ranked:
            logger.info(
                "No eligible partner found",
                latitude=pickup.latitude,
                longitude=pickup.longitude,
                nearby=len(nearby),
            )
            raise NoCandidate("No eligible delivery partner within the search radius")

        ranked.sort(key=lambda candidate: candidate.score)
        return ranked
