"""Refund compensation for cancelled orders.

Runs after the cancellation is committed, so a failed refund never undoes
the cancellation. Executing the refund itself is the payment service's job;
dispatch only flips the payment status.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from dispatch.domain import dispatch
from dispatch.order.events import OrderCancelled
from dispatch.order.order import Order

logger = structlog.get_logger(__name__)


@dispatch.event_handler(part_of=Order)
class RefundCancelledOrder:
    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        if not event.payment_was_completed:
            return

        repo = current_domain.repository_for(Order)
        order = repo.get(event.order_id)
        if order.refund_payment():
            repo.add(order)
            logger.info("Payment flagged for refund", order_id=str(event.order_id))
