"""Payment outcomes reported by the payment service."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class RecordPayment:
    order_id = Identifier(required=True)
    payment_status = String(required=True, choices=PaymentStatus)


@dispatch.command_handler(part_of=Order)
class PaymentHandler:
    @handle(RecordPayment)
    def record_payment(self, command):
        status = PaymentStatus(command.payment_status)
        if status == PaymentStatus.REFUNDED:
            raise ValidationError({"payment_status": ["Refunds follow cancellation"]})

        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.record_payment(status)
        repo.add(order)
        logger.info("Payment recorded", order_id=str(order.id), payment_status=status.value)
