"""Handoff codes for an order: issuing, delivering and resending.

Codes are issued to the customer (who hands them to the partner at pickup
and at the door). A delivery channel failure is logged and leaves the code
valid; ``ResendOrderCode`` is the recovery path.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.channel import get_code_channel
from dispatch.domain import dispatch
from dispatch.exceptions import InvalidState
from dispatch.order.authorization import Actor, authorize_code_resend
from dispatch.order.order import Order, OrderStatus
from dispatch.otp.code import CodePurpose
from dispatch.otp.ledger import OTPLedger

logger = structlog.get_logger(__name__)

# Last status in which each code can still be used
_CODE_WINDOW = {
    CodePurpose.PICKUP: {OrderStatus.PENDING, OrderStatus.CONFIRMED},
    CodePurpose.DELIVERY: {
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PICKED_UP,
        OrderStatus.IN_TRANSIT,
        OrderStatus.OUT_FOR_DELIVERY,
    },
}


def issue_and_deliver(order: Order, purpose: CodePurpose, ledger: OTPLedger | None = None) -> dict:
    """Issue a code for the order's customer and hand it to the channel."""
    ledger = ledger or OTPLedger()
    code = ledger.issue(str(order.customer_id), purpose, order_id=str(order.id))

    result = get_code_channel().deliver(
        code=code,
        subject_id=str(order.customer_id),
        purpose=purpose.value,
        order_number=order.order_number,
    )
    if result.get("status") != "sent":
        logger.warning(
            "Code delivery failed",
            order_id=str(order.id),
            purpose=purpose.value,
            error=result.get("error"),
        )
    return result


@dispatch.command(part_of="Order")
class ResendOrderCode:
    order_id = Identifier(required=True)
    purpose = String(required=True, choices=CodePurpose)
    actor_id = Identifier()
    actor_role = String(max_length=20)


@dispatch.command_handler(part_of=Order)
class OrderCodeHandler:
    @handle(ResendOrderCode)
    def resend_code(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        authorize_code_resend(Actor.from_values(command.actor_id, command.actor_role), order)

        purpose = CodePurpose(command.purpose)
        if OrderStatus(order.status) not in _CODE_WINDOW[purpose]:
            raise InvalidState(f"The {purpose.value.lower()} code is no longer needed in state {order.status}")

        order.code_reissued(purpose.value)
        issue_and_deliver(order, purpose)
        repo.add(order)
        logger.info("Order code reissued", order_id=str(order.id), purpose=purpose.value)
