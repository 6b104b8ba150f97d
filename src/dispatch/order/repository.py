"""Order repository — compare-and-swap saves and the read-side lookups."""

import structlog
from protean.exceptions import ObjectNotFoundError

from dispatch.domain import dispatch
from dispatch.exceptions import InvalidTransition, OrderNotFound
from dispatch.order.order import Order

logger = structlog.get_logger(__name__)


@dispatch.repository(part_of=Order)
class OrderRepository:
    def load(self, order_id) -> Order:
        try:
            return self.get(order_id)
        except ObjectNotFoundError as exc:
            raise OrderNotFound(f"Order {order_id} not found") from exc

    def find_by_number(self, order_number: str) -> Order:
        result = self._dao.query.filter(order_number=order_number).limit(1).all()
        if not result.items:
            raise OrderNotFound(f"Order {order_number} not found")
        return result.items[0]

    def save_transition(self, order: Order, expected_status: str) -> Order:
        """Persist ``order`` only if the stored status is still ``expected_status``.

        Two requests racing on the same order both read the same status; the
        one that saves second finds the status moved and gets
        ``InvalidTransition``.
        """
        stored = self._dao.query.filter(id=str(order.id)).limit(1).all()
        current = stored.items[0].status if stored.items else None
        if current != expected_status:
            logger.warning(
                "Order transition lost a race",
                order_id=str(order.id),
                expected=expected_status,
                stored=current,
                requested=order.status,
            )
            raise InvalidTransition(current or "Unknown", order.status)
        self.add(order)
        return order

    def search(self, **filters):
        return self._dao.query.filter(**filters) if filters else self._dao.query
