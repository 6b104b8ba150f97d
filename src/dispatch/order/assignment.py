"""Partner assignment — manual assignment and automatic dispatch."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.exceptions import AlreadyAssigned, InvalidState, PartnerNotFound
from dispatch.matching.matcher import PartnerMatcher
from dispatch.order.authorization import Actor, authorize_dispatch, authorize_transition
from dispatch.order.order import Order, OrderStatus
from dispatch.partner.partner import Partner

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class AssignPartner:
    order_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    actor_id = Identifier()
    actor_role = String(max_length=20)


@dispatch.command(part_of="Order")
class DispatchOrder:
    order_id = Identifier(required=True)
    radius_km = Float()
    actor_id = Identifier()
    actor_role = String(max_length=20)


def _assign(order: Order, partner_id: str, actor: Actor) -> None:
    """Confirm ``order`` with the partner and book the partner's capacity."""
    expected = order.status
    order.assign_partner(partner_id, changed_by=actor.label)

    partner_repo = current_domain.repository_for(Partner)
    try:
        partner = partner_repo.get(partner_id)
    except ObjectNotFoundError as exc:
        raise PartnerNotFound(f"Partner {partner_id} not found") from exc
    partner.start_order()

    current_domain.repository_for(Order).save_transition(order, expected)
    partner_repo.add(partner)
    logger.info("Partner assigned", order_id=str(order.id), partner_id=str(partner_id), by=actor.label)


@dispatch.command_handler(part_of=Order)
class AssignmentHandler:
    @handle(AssignPartner)
    def assign_partner(self, command):
        order = current_domain.repository_for(Order).load(command.order_id)
        actor = Actor.from_values(command.actor_id, command.actor_role)
        authorize_transition(actor, order, OrderStatus.CONFIRMED, partner_id=command.partner_id)
        _assign(order, str(command.partner_id), actor)
        return str(command.partner_id)

    @handle(DispatchOrder)
    def dispatch_order(self, command):
        order = current_domain.repository_for(Order).load(command.order_id)
        actor = Actor.from_values(command.actor_id, command.actor_role)
        authorize_dispatch(actor, order)

        # Fail fast before ranking partners for an order that cannot take one
        if order.partner_id:
            raise AlreadyAssigned(f"Order {order.order_number} already has a delivery partner")
        if OrderStatus(order.status) != OrderStatus.PENDING:
            raise InvalidState(f"Order cannot be assigned in state {order.status}")

        ranked = PartnerMatcher().rank_for_delivery(order.pickup_address, order.delivery_address, command.radius_km)
        best = ranked[0]
        logger.info(
            "Dispatch candidate selected",
            order_id=str(order.id),
            partner_id=best.partner_id,
            score=round(best.score, 4),
            candidates=len(ranked),
        )
        _assign(order, best.partner_id, actor)
        return best.partner_id
