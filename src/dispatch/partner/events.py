"""Partner events — changes to a delivery partner's dispatch profile."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from dispatch.domain import dispatch


@dispatch.event(part_of="Partner")
class PartnerRegistered:
    __version__ = 1

    partner_id = Identifier(required=True)
    name = String(required=True)
    max_concurrent_orders = Integer(required=True)
    registered_at = DateTime(required=True)


@dispatch.event(part_of="Partner")
class PartnerStatusChanged:
    """Active, available or online flags changed."""

    __version__ = 1

    partner_id = Identifier(required=True)
    is_active = Boolean(required=True)
    is_available = Boolean(required=True)
    is_online = Boolean(required=True)
    changed_at = DateTime(required=True)


@dispatch.event(part_of="Partner")
class PartnerRated:
    __version__ = 1

    partner_id = Identifier(required=True)
    order_id = Identifier(required=True)
    score = Integer(required=True)
    new_rating = Float(required=True)
    rating_count = Integer(required=True)
    rated_at = DateTime(required=True)
