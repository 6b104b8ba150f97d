"""Partner reacts to Order events — workload release and customer ratings.

Assignment books capacity synchronously (it must fail if the partner is
full); everything after that flows back to the partner through events.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from dispatch.domain import dispatch
from dispatch.order.events import OrderCancelled, OrderDelivered, OrderRated, OrderReturned
from dispatch.order.order import RatingType
from dispatch.partner.partner import Partner

logger = structlog.get_logger(__name__)


def _load(partner_id):
    try:
        return current_domain.repository_for(Partner).get(partner_id)
    except ObjectNotFoundError:
        logger.warning("Order event for unknown partner", partner_id=str(partner_id))
        return None


@dispatch.event_handler(part_of=Partner, stream_category="dispatch::order")
class PartnerOrderEventHandler:
    """Keeps partner workload and rating in step with their orders."""

    def _finish(self, partner_id, delivered: bool) -> None:
        if not partner_id:
            return
        partner = _load(partner_id)
        if partner is None:
            return
        partner.finish_order(delivered=delivered)
        current_domain.repository_for(Partner).add(partner)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        self._finish(event.partner_id, delivered=True)

    @handle(OrderReturned)
    def on_order_returned(self, event: OrderReturned) -> None:
        self._finish(event.partner_id, delivered=False)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        self._finish(event.partner_id, delivered=False)

    @handle(OrderRated)
    def on_order_rated(self, event: OrderRated) -> None:
        if event.rating_type != RatingType.CUSTOMER.value or not event.partner_id:
            return
        partner = _load(event.partner_id)
        if partner is None:
            return
        partner.record_rating(event.score, order_id=str(event.order_id))
        current_domain.repository_for(Partner).add(partner)
        logger.info("Partner rating updated", partner_id=str(event.partner_id), rating=partner.rating)
