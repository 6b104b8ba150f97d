"""Partner aggregate — the dispatch-side view of a delivery partner.

Onboarding (documents, banking, approval) belongs to the partner service.
Dispatch keeps only what matching and assignment need: eligibility flags,
workload, reputation and the last accepted position.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, ValueObject

from dispatch.domain import dispatch
from dispatch.exceptions import PartnerIneligible
from dispatch.geo.point import GeoPoint
from dispatch.partner.events import PartnerRated, PartnerRegistered, PartnerStatusChanged


@dispatch.aggregate
class Partner:
    name = String(required=True, max_length=150)
    phone = String(max_length=30)
    is_active = Boolean(default=True)
    is_available = Boolean(default=False)
    is_online = Boolean(default=False)
    rating = Float(default=0.0, min_value=0.0, max_value=5.0)
    rating_count = Integer(default=0, min_value=0)
    completed_deliveries = Integer(default=0, min_value=0)
    cancelled_orders = Integer(default=0, min_value=0)
    ongoing_orders = Integer(default=0, min_value=0)
    max_concurrent_orders = Integer(default=1, min_value=1)
    last_location = ValueObject(GeoPoint)
    last_location_at = DateTime()
    registered_at = DateTime()

    @classmethod
    def register(
        cls,
        name: str,
        phone: str | None = None,
        max_concurrent_orders: int = 1,
        partner_id: str | None = None,
    ):
        now = datetime.now(UTC)
        kwargs = {"id": partner_id} if partner_id else {}
        partner = cls(
            name=name,
            phone=phone,
            max_concurrent_orders=max_concurrent_orders,
            registered_at=now,
            **kwargs,
        )
        partner.raise_(
            PartnerRegistered(
                partner_id=str(partner.id),
                name=name,
                max_concurrent_orders=max_concurrent_orders,
                registered_at=now,
            )
        )
        return partner

    # -------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------
    @property
    def has_capacity(self) -> bool:
        return (self.ongoing_orders or 0) < self.max_concurrent_orders

    @property
    def is_eligible(self) -> bool:
        return bool(self.is_active and self.is_available and self.has_capacity)

    def _status_changed(self) -> None:
        self.raise_(
            PartnerStatusChanged(
                partner_id=str(self.id),
                is_active=self.is_active,
                is_available=self.is_available,
                is_online=self.is_online,
                changed_at=datetime.now(UTC),
            )
        )

    def set_active(self, is_active: bool) -> None:
        self.is_active = is_active
        if not is_active:
            self.is_available = False
        self._status_changed()

    def set_available(self, is_available: bool) -> None:
        if is_available and not self.is_active:
            raise ValidationError({"partner": ["An inactive partner cannot become available"]})
        self.is_available = is_available
        self._status_changed()

    def set_online(self, is_online: bool) -> None:
        if self.is_online == is_online:
            return
        self.is_online = is_online
        self._status_changed()

    def move_to(self, point: GeoPoint, at: datetime, is_online: bool | None = None) -> None:
        """Record the partner's latest accepted position."""
        self.last_location = point
        self.last_location_at = at
        if is_online is not None:
            self.set_online(is_online)

    # -------------------------------------------------------------------
    # Workload
    # -------------------------------------------------------------------
    def start_order(self) -> None:
        if not self.is_active:
            raise PartnerIneligible("Partner is not active")
        if not self.has_capacity:
            raise PartnerIneligible("Partner is already at capacity")
        self.ongoing_orders = (self.ongoing_orders or 0) + 1

    def finish_order(self, delivered: bool) -> None:
        self.ongoing_orders = max(0, (self.ongoing_orders or 0) - 1)
        if delivered:
            self.completed_deliveries = (self.completed_deliveries or 0) + 1
        else:
            self.cancelled_orders = (self.cancelled_orders or 0) + 1

    # -------------------------------------------------------------------
    # Reputation
    # -------------------------------------------------------------------
    def record_rating(self, score: int, order_id: str) -> None:
        """Fold a customer's 1-5 score into the running mean."""
        if not 1 <= score <= 5:
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})
        count = (self.rating_count or 0) + 1
        self.rating = round(((self.rating or 0.0) * (count - 1) + score) / count, 2)
        self.rating_count = count
        self.raise_(
            PartnerRated(
                partner_id=str(self.id),
                order_id=order_id,
                score=score,
                new_rating=self.rating,
                rating_count=count,
                rated_at=datetime.now(UTC),
            )
        )
