"""Domain events for the Order aggregate.

Versioned, immutable facts. Partner workload and reputation react to them,
as does the payment refund compensation.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from dispatch.domain import dispatch


@dispatch.event(part_of="Order")
class OrderCreated:
    """A customer booked a delivery; both handoff codes were issued."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    tier = String(required=True)
    distance_km = Float(required=True)
    total_amount = Float(required=True)
    estimated_delivery_at = DateTime(required=True)
    created_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class PartnerAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    confirmed_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderStatusChanged:
    """Every transition, including assignment and cancellation."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    notes = Text()
    changed_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    partner_id = Identifier()
    total_amount = Float()
    delivered_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderReturned:
    __version__ = 1

    order_id = Identifier(required=True)
    partner_id = Identifier()
    returned_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    partner_id = Identifier()
    reason = String(required=True)
    cancelled_by = String(required=True)
    payment_was_completed = Boolean(default=False)
    cancelled_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class PaymentRefunded:
    """Compensation for a cancelled order that had already been paid."""

    __version__ = 1

    order_id = Identifier(required=True)
    amount = Float()
    refunded_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderRated:
    __version__ = 1

    order_id = Identifier(required=True)
    partner_id = Identifier()
    customer_id = Identifier(required=True)
    rating_type = String(required=True)
    score = Integer(required=True)
    rated_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderCodeReissued:
    __version__ = 1

    order_id = Identifier(required=True)
    purpose = String(required=True)
    reissued_at = DateTime(required=True)
