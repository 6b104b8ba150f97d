"""Post-delivery ratings — command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.authorization import Actor, authorize_rating
from dispatch.order.order import Order, RatingType

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class RateOrder:
    order_id = Identifier(required=True)
    score = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=1000)
    rating_type = String(required=True, choices=RatingType)
    actor_id = Identifier()
    actor_role = String(max_length=20)


@dispatch.command_handler(part_of=Order)
class RateOrderHandler:
    @handle(RateOrder)
    def rate_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        rating_type = RatingType(command.rating_type)
        authorize_rating(Actor.from_values(command.actor_id, command.actor_role), order, rating_type)

        order.rate(command.score, command.comment, rating_type)
        repo.add(order)
        logger.info("Order rated", order_id=str(order.id), rating_type=rating_type.value, score=command.score)
