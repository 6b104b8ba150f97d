"""Handoff verification — the partner proves pickup and delivery with a code.

These run outside a unit of work. The ledger persists each failed attempt
before raising, and the order only advances after the code is accepted, by
processing ``UpdateOrderStatus`` as the system.
"""

import structlog
from protean.utils.globals import current_domain

from dispatch.exceptions import InvalidState
from dispatch.order.authorization import authorize_code_verification
from dispatch.order.order import Order, OrderStatus
from dispatch.order.status import UpdateOrderStatus
from dispatch.otp.code import CodePurpose
from dispatch.otp.ledger import OTPLedger

logger = structlog.get_logger(__name__)


def _verify_handoff(
    order_id: str,
    code: str,
    partner_id: str,
    purpose: CodePurpose,
    expected: OrderStatus,
    target: OrderStatus,
    notes: str,
    ledger: OTPLedger | None = None,
) -> Order:
    repo = current_domain.repository_for(Order)
    order = repo.load(order_id)
    authorize_code_verification(str(partner_id), order)
    if OrderStatus(order.status) != expected:
        raise InvalidState(
            f"Order is not ready for {purpose.value.lower()} verification: "
            f"it is {order.status}, expected {expected.value}"
        )

    (ledger or OTPLedger()).verify(str(order.customer_id), purpose, str(order.id), code)

    current_domain.process(
        UpdateOrderStatus(order_id=str(order.id), new_status=target.value, notes=notes),
        asynchronous=False,
    )
    logger.info("Handoff verified", order_id=str(order.id), purpose=purpose.value, partner_id=str(partner_id))
    return repo.load(order_id)


def verify_pickup(order_id: str, code: str, partner_id: str, ledger: OTPLedger | None = None) -> Order:
    """Accept the pickup code and move a CONFIRMED order to PICKED_UP."""
    return _verify_handoff(
        order_id,
        code,
        partner_id,
        CodePurpose.PICKUP,
        OrderStatus.CONFIRMED,
        OrderStatus.PICKED_UP,
        "Package picked up with code verification",
        ledger,
    )


def verify_delivery(order_id: str, code: str, partner_id: str, ledger: OTPLedger | None = None) -> Order:
    """Accept the delivery code and move an OUT_FOR_DELIVERY order to DELIVERED."""
    return _verify_handoff(
        order_id,
        code,
        partner_id,
        CodePurpose.DELIVERY,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
        "Package delivered with code verification",
        ledger,
    )
