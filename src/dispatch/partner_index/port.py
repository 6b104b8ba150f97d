"""Spatial partner index port — proximity lookup over partners' last positions."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class IndexedPartner:
    """A partner as the index sees it: last position plus eligibility flags."""

    partner_id: str
    latitude: float
    longitude: float
    is_active: bool
    is_available: bool
    is_online: bool
    rating: float
    completed_deliveries: int
    ongoing_orders: int = 0
    max_concurrent_orders: int = 1
    distance_km: float = 0.0
    last_location_at: datetime | None = None

    @property
    def has_capacity(self) -> bool:
        return self.ongoing_orders < self.max_concurrent_orders


class PartnerIndexPort(ABC):
    @abstractmethod
    def nearby(self, latitude: float, longitude: float, radius_km: float) -> list[IndexedPartner]:
        """Online partners whose last position is within the radius, nearest first."""
        ...

    @abstractmethod
    def upsert_location(self, subject_id: str, point, is_online: bool | None, at: datetime) -> bool:
        """Move a partner in the index.

        Returns:
            False when the subject is not a known partner (nothing indexed).
        """
        ...
