"""Status updates along the delivery path."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.authorization import Actor, authorize_transition
from dispatch.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=30)
    notes = Text()
    actor_id = Identifier()
    actor_role = String(max_length=20)


@dispatch.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        try:
            target = OrderStatus(command.new_status)
        except ValueError as exc:
            raise ValidationError({"new_status": [f"Unknown order status {command.new_status}"]}) from exc

        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order.assert_can_transition(target)

        actor = Actor.from_values(command.actor_id, command.actor_role)
        authorize_transition(actor, order, target)

        expected = order.status
        if target == OrderStatus.CANCELLED:
            order.cancel(reason=command.notes or "Cancelled", cancelled_by=actor.label)
        else:
            order.advance(target, notes=command.notes, changed_by=actor.label)
        repo.save_transition(order, expected)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            from_status=expected,
            to_status=order.status,
            by=actor.label,
        )
        return order.status
