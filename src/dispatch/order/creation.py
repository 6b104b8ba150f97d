"""Order creation — command and handler.

Distance and price are computed here, the ETA is derived from the tier, and
both handoff codes are issued before the order is saved in PENDING.
"""

import json
from datetime import timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from dispatch.customers import get_customer_directory
from dispatch.domain import dispatch
from dispatch.exceptions import CustomerNotFound
from dispatch.geo.geomath import distance_between
from dispatch.order.codes import issue_and_deliver
from dispatch.order.numbering import order_numbers
from dispatch.order.order import Address, Order, PaymentMethod
from dispatch.otp.code import CodePurpose
from dispatch.otp.ledger import OTPLedger
from dispatch.pricing.pricing_engine import DeliveryTier, price_for_distance
from dispatch.utils.clock import utcnow

logger = structlog.get_logger(__name__)


def estimated_delivery_hours(tier: DeliveryTier, distance_km: float) -> float:
    """Hours from booking to expected handoff."""
    if tier == DeliveryTier.STANDARD:
        return max(4.0, distance_km * 1.0)
    if tier == DeliveryTier.EXPRESS:
        return max(2.0, distance_km * 0.5)
    if tier == DeliveryTier.SAME_DAY:
        return 8.0
    return 24.0


def _loads(value):
    return json.loads(value) if isinstance(value, str) else value


@dispatch.command(part_of="Order")
class CreateOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {name, quantity, weight, value, description?}
    pickup_address = Text(required=True)  # JSON: address dict with latitude/longitude
    delivery_address = Text(required=True)  # JSON: address dict with latitude/longitude
    tier = String(choices=DeliveryTier, default=DeliveryTier.STANDARD.value)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    scheduled_pickup_at = DateTime()
    scheduled_delivery_at = DateTime()
    special_instructions = String(max_length=1000)
    customer_notes = String(max_length=1000)


@dispatch.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        customer_id = str(command.customer_id)
        if not get_customer_directory().exists(customer_id):
            raise CustomerNotFound(f"Customer {customer_id} not found")

        items_data = _loads(command.items)
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})
        pickup_data = _loads(command.pickup_address)
        delivery_data = _loads(command.delivery_address)

        # Constructing the value objects validates the coordinates up front
        pickup = Address(**pickup_data)
        delivery = Address(**delivery_data)

        tier = DeliveryTier(command.tier or DeliveryTier.STANDARD.value)
        distance = distance_between(pickup, delivery)
        quote = price_for_distance(distance, items_data, tier)
        now = utcnow()

        order = Order.create(
            order_number=order_numbers().next(),
            customer_id=customer_id,
            items_data=items_data,
            pickup_address=pickup_data,
            delivery_address=delivery_data,
            tier=tier,
            payment_method=command.payment_method or PaymentMethod.CASH.value,
            pricing=quote,
            distance_km=distance,
            estimated_delivery_at=now + timedelta(hours=estimated_delivery_hours(tier, distance)),
            scheduled_pickup_at=command.scheduled_pickup_at,
            scheduled_delivery_at=command.scheduled_delivery_at,
            special_instructions=command.special_instructions,
            customer_notes=command.customer_notes,
        )
        current_domain.repository_for(Order).add(order)

        ledger = OTPLedger()
        for purpose in (CodePurpose.PICKUP, CodePurpose.DELIVERY):
            issue_and_deliver(order, purpose, ledger)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=customer_id,
            tier=tier.value,
            distance_km=round(distance, 3),
            total_amount=round(quote.total_amount, 2),
        )
        return str(order.id)
