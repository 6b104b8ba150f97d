"""Order aggregate — a single booked delivery from pickup to handoff.

State Machine:
    PENDING → CONFIRMED → PICKED_UP → IN_TRANSIT → OUT_FOR_DELIVERY → DELIVERED
    PENDING, CONFIRMED → CANCELLED
    PICKED_UP, IN_TRANSIT, OUT_FOR_DELIVERY → RETURNED

DELIVERED, CANCELLED and RETURNED are terminal. Every transition is checked
against the table before anything is changed, and milestone timestamps are
kept consistent with the status by an invariant.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from dispatch.domain import dispatch
from dispatch.exceptions import AlreadyAssigned, InvalidState, InvalidTransition
from dispatch.geo.point import GeoPoint
from dispatch.order.events import (
    OrderCancelled,
    OrderCodeReissued,
    OrderCreated,
    OrderDelivered,
    OrderRated,
    OrderReturned,
    OrderStatusChanged,
    PartnerAssigned,
    PaymentRefunded,
)
from dispatch.pricing.pricing_engine import DeliveryTier


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PICKED_UP = "Picked_Up"
    IN_TRANSIT = "In_Transit"
    OUT_FOR_DELIVERY = "Out_For_Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"


class PaymentMethod(Enum):
    CASH = "Cash"
    CARD = "Card"
    UPI = "UPI"
    WALLET = "Wallet"


class PaymentStatus(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class RatingType(Enum):
    CUSTOMER = "Customer"  # The customer rates the delivery partner
    PARTNER = "Partner"  # The partner rates the customer


VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED},
    OrderStatus.PICKED_UP: {OrderStatus.IN_TRANSIT, OrderStatus.RETURNED},
    OrderStatus.IN_TRANSIT: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.RETURNED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
}

TERMINAL_STATES = {status for status, targets in VALID_TRANSITIONS.items() if not targets}

ACTIVE_STATES = {
    OrderStatus.CONFIRMED,
    OrderStatus.PICKED_UP,
    OrderStatus.IN_TRANSIT,
    OrderStatus.OUT_FOR_DELIVERY,
}

# Milestone that each status stamps when entered
_MILESTONES = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.IN_TRANSIT: "in_transit_at",
    OrderStatus.OUT_FOR_DELIVERY: "out_for_delivery_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.RETURNED: "returned_at",
}

# (must be set, must be unset) per status
_MILESTONE_RULES = {
    OrderStatus.PENDING: (
        set(),
        set(_MILESTONES.values()),
    ),
    OrderStatus.CONFIRMED: (
        {"confirmed_at"},
        {"picked_up_at", "in_transit_at", "out_for_delivery_at", "delivered_at", "cancelled_at", "returned_at"},
    ),
    OrderStatus.PICKED_UP: (
        {"confirmed_at", "picked_up_at"},
        {"in_transit_at", "out_for_delivery_at", "delivered_at", "cancelled_at", "returned_at"},
    ),
    OrderStatus.IN_TRANSIT: (
        {"confirmed_at", "picked_up_at", "in_transit_at"},
        {"out_for_delivery_at", "delivered_at", "cancelled_at", "returned_at"},
    ),
    OrderStatus.OUT_FOR_DELIVERY: (
        {"confirmed_at", "picked_up_at", "in_transit_at", "out_for_delivery_at"},
        {"delivered_at", "cancelled_at", "returned_at"},
    ),
    OrderStatus.DELIVERED: (
        {"confirmed_at", "picked_up_at", "in_transit_at", "out_for_delivery_at", "delivered_at"},
        {"cancelled_at", "returned_at"},
    ),
    OrderStatus.CANCELLED: (
        {"cancelled_at"},
        {"picked_up_at", "in_transit_at", "out_for_delivery_at", "delivered_at", "returned_at"},
    ),
    OrderStatus.RETURNED: (
        {"confirmed_at", "picked_up_at", "returned_at"},
        {"delivered_at", "cancelled_at"},
    ),
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@dispatch.value_object(part_of="Order")
class Address:
    """A pickup or drop-off address with its resolved coordinates.

    Captured when the order is booked and never changed afterwards, even if
    the customer later edits their saved address.
    """

    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100, default="IN")
    contact_name = String(max_length=150)
    contact_phone = String(max_length=30)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    accuracy = Float(min_value=0.0)

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude, accuracy=self.accuracy)


@dispatch.value_object(part_of="Order")
class PricingBreakdown:
    """Price locked in at booking time."""

    base_price = Float(default=0.0)
    distance_charge = Float(default=0.0)
    weight_charge = Float(default=0.0)
    tier_surcharge = Float(default=0.0)
    subtotal = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount = Float(default=0.0)
    total_amount = Float(default=0.0)


@dispatch.value_object(part_of="Order")
class Rating:
    score = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=1000)
    rated_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dispatch.entity(part_of="Order")
class OrderItem:
    name = String(required=True, max_length=255)
    description = String(max_length=1000)
    quantity = Integer(required=True, min_value=1)
    weight = Float(default=0.0, min_value=0.0)  # kg for the whole line
    value = Float(default=0.0, min_value=0.0)


@dispatch.entity(part_of="Order")
class StatusChange:
    """One entry of the order's transition trail."""

    from_status = String(max_length=30)
    to_status = String(required=True, max_length=30)
    notes = Text()
    changed_by = String(max_length=50)
    changed_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@dispatch.aggregate
class Order:
    order_number = String(required=True, max_length=40, unique=True)
    customer_id = Identifier(required=True)
    partner_id = Identifier()
    pickup_address = ValueObject(Address, required=True)
    delivery_address = ValueObject(Address, required=True)
    items = HasMany(OrderItem)
    tier = String(choices=DeliveryTier, default=DeliveryTier.STANDARD.value)
    pricing = ValueObject(PricingBreakdown)
    distance_km = Float(min_value=0.0)
    estimated_delivery_at = DateTime()
    scheduled_pickup_at = DateTime()
    scheduled_delivery_at = DateTime()
    special_instructions = String(max_length=1000)
    customer_notes = String(max_length=1000)

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)

    confirmed_at = DateTime()
    picked_up_at = DateTime()
    in_transit_at = DateTime()
    out_for_delivery_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    returned_at = DateTime()

    customer_rating = ValueObject(Rating)
    partner_rating = ValueObject(Rating)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=150)
    status_history = HasMany(StatusChange)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def milestones_match_status(self):
        required, forbidden = _MILESTONE_RULES[OrderStatus(self.status)]
        missing = sorted(name for name in required if getattr(self, name) is None)
        unexpected = sorted(name for name in forbidden if getattr(self, name) is not None)
        if missing or unexpected:
            raise ValidationError(
                {
                    "status": [
                        f"Order in state {self.status} has inconsistent milestones "
                        f"(missing: {', '.join(missing) or '-'}; unexpected: {', '.join(unexpected) or '-'})"
                    ]
                }
            )

    @invariant.post
    def dispatched_orders_have_a_partner(self):
        status = OrderStatus(self.status)
        if status not in (OrderStatus.PENDING, OrderStatus.CANCELLED) and not self.partner_id:
            raise ValidationError({"partner_id": [f"Order in state {self.status} must have a delivery partner"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        customer_id,
        items_data,
        pickup_address,
        delivery_address,
        tier,
        payment_method,
        pricing,
        distance_km,
        estimated_delivery_at,
        scheduled_pickup_at=None,
        scheduled_delivery_at=None,
        special_instructions=None,
        customer_notes=None,
    ):
        """Book a new order in PENDING.

        Args:
            items_data: List of dicts with name, quantity, weight, value and
                optionally description.
            pickup_address / delivery_address: Dicts matching ``Address``.
            pricing: A ``PriceQuote`` from the pricing engine.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_id=str(customer_id),
            pickup_address=Address(**pickup_address),
            delivery_address=Address(**delivery_address),
            items=[OrderItem(**item) for item in items_data],
            tier=DeliveryTier(tier).value,
            payment_method=PaymentMethod(payment_method).value,
            pricing=PricingBreakdown(
                base_price=pricing.base_price,
                distance_charge=pricing.distance_charge,
                weight_charge=pricing.weight_charge,
                tier_surcharge=pricing.tier_surcharge,
                subtotal=pricing.subtotal,
                tax_amount=pricing.tax_amount,
                discount=pricing.discount,
                total_amount=pricing.total_amount,
            ),
            distance_km=distance_km,
            estimated_delivery_at=estimated_delivery_at,
            scheduled_pickup_at=scheduled_pickup_at,
            scheduled_delivery_at=scheduled_delivery_at,
            special_instructions=special_instructions,
            customer_notes=customer_notes,
            status_history=[StatusChange(to_status=OrderStatus.PENDING.value, notes="Order created", changed_at=now)],
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                tier=order.tier,
                distance_km=distance_km,
                total_amount=pricing.total_amount,
                estimated_delivery_at=estimated_delivery_at,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries on state
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATES

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in VALID_TRANSITIONS[OrderStatus(self.status)]

    def assert_can_transition(self, target: OrderStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidTransition(self.status, target.value)

    def _record_transition(self, target: OrderStatus, notes, changed_by, now) -> str:
        """Move to ``target`` and stamp its milestone. Call inside atomic_change."""
        previous = self.status
        self.status = target.value
        setattr(self, _MILESTONES[target], now)
        self.updated_at = now
        self.add_status_history(
            StatusChange(
                from_status=previous,
                to_status=target.value,
                notes=notes,
                changed_by=changed_by,
                changed_at=now,
            )
        )
        return previous

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def assign_partner(self, partner_id, changed_by=None):
        """Bind a delivery partner and confirm the order."""
        if self.partner_id:
            raise AlreadyAssigned(f"Order {self.order_number} already has a delivery partner")
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise InvalidState(f"Order cannot be assigned in state {self.status}")
        self.assert_can_transition(OrderStatus.CONFIRMED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.partner_id = str(partner_id)
            previous = self._record_transition(
                OrderStatus.CONFIRMED, "Delivery partner assigned", changed_by, now
            )

        self.raise_(PartnerAssigned(order_id=str(self.id), partner_id=str(partner_id), confirmed_at=now))
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=self.status,
                notes="Delivery partner assigned",
                changed_at=now,
            )
        )

    def advance(self, target: OrderStatus, notes=None, changed_by=None):
        """Move along the delivery path (pickup onwards) or return the parcel.

        Confirmation goes through ``assign_partner`` and cancellation through
        ``cancel``; both carry data a bare status change does not.
        """
        self.assert_can_transition(target)
        if target == OrderStatus.CONFIRMED:
            raise InvalidState("An order is confirmed by assigning a delivery partner")
        if target == OrderStatus.CANCELLED:
            raise InvalidState("An order is cancelled with a reason, not a status change")

        now = datetime.now(UTC)
        with atomic_change(self):
            previous = self._record_transition(target, notes, changed_by, now)
            if target == OrderStatus.DELIVERED:
                self.payment_status = PaymentStatus.COMPLETED.value

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=target.value,
                notes=notes,
                changed_at=now,
            )
        )
        if target == OrderStatus.DELIVERED:
            self.raise_(
                OrderDelivered(
                    order_id=str(self.id),
                    partner_id=self.partner_id,
                    total_amount=self.pricing.total_amount if self.pricing else None,
                    delivered_at=now,
                )
            )
        elif target == OrderStatus.RETURNED:
            self.raise_(OrderReturned(order_id=str(self.id), partner_id=self.partner_id, returned_at=now))

    def cancel(self, reason: str, cancelled_by: str):
        self.assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        payment_was_completed = self.payment_status == PaymentStatus.COMPLETED.value
        with atomic_change(self):
            previous = self._record_transition(OrderStatus.CANCELLED, reason, cancelled_by, now)
            self.cancellation_reason = reason
            self.cancelled_by = cancelled_by

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=self.status,
                notes=reason,
                changed_at=now,
            )
        )
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                partner_id=self.partner_id,
                reason=reason,
                cancelled_by=cancelled_by,
                payment_was_completed=payment_was_completed,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment(self, payment_status: PaymentStatus):
        """Record a payment outcome reported by the payment service."""
        if payment_status == PaymentStatus.REFUNDED:
            raise InvalidState("Refunds are recorded by refund_payment")
        if OrderStatus(self.status) in (OrderStatus.CANCELLED, OrderStatus.RETURNED):
            raise InvalidState(f"Payment cannot be recorded for an order in state {self.status}")
        if self.payment_status == PaymentStatus.REFUNDED.value:
            raise InvalidState("Payment was already refunded")
        self.payment_status = payment_status.value
        self.updated_at = datetime.now(UTC)

    def refund_payment(self) -> bool:
        """Flag a completed payment as refunded. Returns False if nothing to refund."""
        if self.payment_status != PaymentStatus.COMPLETED.value:
            return False

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = now
        self.raise_(
            PaymentRefunded(
                order_id=str(self.id),
                amount=self.pricing.total_amount if self.pricing else None,
                refunded_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Ratings
    # -------------------------------------------------------------------
    def rate(self, score: int, comment: str | None, rating_type: RatingType):
        if OrderStatus(self.status) != OrderStatus.DELIVERED:
            raise InvalidState(f"Order must be delivered to rate, it is {self.status}")

        field_name = "customer_rating" if rating_type == RatingType.CUSTOMER else "partner_rating"
        if getattr(self, field_name) is not None:
            raise InvalidState(f"Order was already rated by the {rating_type.value.lower()}")

        now = datetime.now(UTC)
        setattr(self, field_name, Rating(score=score, comment=comment, rated_at=now))
        self.updated_at = now
        self.raise_(
            OrderRated(
                order_id=str(self.id),
                partner_id=self.partner_id,
                customer_id=str(self.customer_id),
                rating_type=rating_type.value,
                score=score,
                rated_at=now,
            )
        )

    def code_reissued(self, purpose: str):
        if self.is_terminal:
            raise InvalidState(f"Codes cannot be reissued for an order in state {self.status}")
        self.raise_(OrderCodeReissued(order_id=str(self.id), purpose=purpose, reissued_at=datetime.now(UTC)))
