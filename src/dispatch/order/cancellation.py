"""Order cancellation — command and handler.

A paid order is refunded by ``RefundCancelledOrder`` once the cancellation
has been committed.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.authorization import Actor, authorize_transition
from dispatch.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    actor_id = Identifier()
    actor_role = String(max_length=20)


@dispatch.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.assert_can_transition(OrderStatus.CANCELLED)

        actor = Actor.from_values(command.actor_id, command.actor_role)
        authorize_transition(actor, order, OrderStatus.CANCELLED)

        expected = order.status
        order.cancel(reason=command.reason, cancelled_by=actor.label)
        repo.save_transition(order, expected)
        logger.info("Order cancelled", order_id=str(order.id), from_status=expected, by=actor.label)
