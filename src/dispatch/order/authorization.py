"""Who may do what to an order.

The identity layer hands every call an authenticated ``Actor``. Each
transition edge has one predicate here; handlers call ``authorize_*`` and
never compare roles themselves.
"""

from dataclasses import dataclass
from enum import Enum

from dispatch.exceptions import Unauthorized
from dispatch.order.order import OrderStatus, RatingType


class Role(Enum):
    CUSTOMER = "Customer"
    PARTNER = "Partner"
    ADMIN = "Admin"


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role

    @classmethod
    def customer(cls, customer_id: str) -> "Actor":
        return cls(str(customer_id), Role.CUSTOMER)

    @classmethod
    def partner(cls, partner_id: str) -> "Actor":
        return cls(str(partner_id), Role.PARTNER)

    @classmethod
    def admin(cls, admin_id: str = "admin") -> "Actor":
        return cls(str(admin_id), Role.ADMIN)

    @classmethod
    def system(cls) -> "Actor":
        """Trusted in-process caller (schedulers, verified handoffs)."""
        return cls("system", Role.ADMIN)

    @classmethod
    def from_values(cls, actor_id: str | None, actor_role: str | None) -> "Actor":
        """Rebuild an actor from command fields; missing values mean the system."""
        if not actor_role:
            return cls.system()
        return cls(str(actor_id), Role(actor_role))

    @property
    def label(self) -> str:
        return self.role.value if self.id == "system" else f"{self.role.value}:{self.id}"


def _is_admin(actor: Actor, order) -> bool:
    return actor.role == Role.ADMIN


def _is_owner(actor: Actor, order) -> bool:
    return actor.role == Role.CUSTOMER and actor.id == str(order.customer_id)


def _is_assigned_partner(actor: Actor, order) -> bool:
    return actor.role == Role.PARTNER and order.partner_id is not None and actor.id == str(order.partner_id)


def _admin_only(actor, order, **_):
    return _is_admin(actor, order)


def _accepting_partner_or_admin(actor, order, partner_id=None, **_):
    # A partner may only take an order for themselves
    return _is_admin(actor, order) or (actor.role == Role.PARTNER and actor.id == str(partner_id))


def _assigned_partner_or_admin(actor, order, **_):
    return _is_admin(actor, order) or _is_assigned_partner(actor, order)


def _any_party(actor, order, **_):
    return _is_admin(actor, order) or _is_owner(actor, order) or _is_assigned_partner(actor, order)


# Keyed by target status. PICKED_UP and DELIVERED are reached by partners only
# through code verification, which advances the order as the system.
TRANSITION_RULES = {
    OrderStatus.CONFIRMED: _accepting_partner_or_admin,
    OrderStatus.PICKED_UP: _admin_only,
    OrderStatus.IN_TRANSIT: _assigned_partner_or_admin,
    OrderStatus.OUT_FOR_DELIVERY: _assigned_partner_or_admin,
    OrderStatus.DELIVERED: _admin_only,
    OrderStatus.RETURNED: _assigned_partner_or_admin,
    OrderStatus.CANCELLED: _any_party,
}


def authorize_transition(actor: Actor, order, target: OrderStatus, **context) -> None:
    rule = TRANSITION_RULES[target]
    if not rule(actor, order, **context):
        raise Unauthorized(f"{actor.role.value} is not allowed to move this order to {target.value}")


def authorize_code_verification(partner_id: str, order) -> None:
    if not _is_assigned_partner(Actor.partner(partner_id), order):
        raise Unauthorized("Only the assigned delivery partner can verify handoff codes")


def authorize_rating(actor: Actor, order, rating_type: RatingType) -> None:
    if rating_type == RatingType.CUSTOMER:
        allowed = _is_owner(actor, order) or _is_admin(actor, order)
    else:
        allowed = _is_assigned_partner(actor, order) or _is_admin(actor, order)
    if not allowed:
        raise Unauthorized(f"{actor.role.value} cannot leave a {rating_type.value.lower()} rating on this order")


def authorize_view(actor: Actor, order) -> None:
    if not _any_party(actor, order):
        raise Unauthorized("Not allowed to view this order")


def authorize_code_resend(actor: Actor, order) -> None:
    if not (_is_owner(actor, order) or _is_admin(actor, order)):
        raise Unauthorized("Only the customer can request a new code")


def authorize_dispatch(actor: Actor, order) -> None:
    if not _is_admin(actor, order):
        raise Unauthorized("Only dispatch operators can auto-assign orders")


def booking_customer(actor: Actor, customer_id: str | None) -> str:
    """The customer an order is booked for: the caller, or anyone for an admin."""
    if actor.role == Role.CUSTOMER:
        if customer_id and str(customer_id) != actor.id:
            raise Unauthorized("Customers can only book orders for themselves")
        return actor.id
    if actor.role == Role.ADMIN and customer_id:
        return str(customer_id)
    raise Unauthorized("Only customers and admins can book orders")


def authorize_listing(actor: Actor, customer_id: str | None = None, partner_id: str | None = None) -> None:
    """Customers list their own orders, partners theirs, admins anything."""
    if actor.role == Role.ADMIN:
        return
    if actor.role == Role.CUSTOMER and customer_id == actor.id and not partner_id:
        return
    if actor.role == Role.PARTNER and partner_id == actor.id and not customer_id:
        return
    raise Unauthorized("Not allowed to list these orders")


def authorize_partner_self(actor: Actor, partner_id: str) -> None:
    if actor.role == Role.ADMIN or (actor.role == Role.PARTNER and actor.id == str(partner_id)):
        return
    raise Unauthorized("Only the partner or an admin can change this profile")


def authorize_admin(actor: Actor) -> None:
    if actor.role != Role.ADMIN:
        raise Unauthorized("Admin role required")


def authorize_staff(actor: Actor) -> None:
    """Partners and admins; customers never browse other people's orders."""
    if actor.role not in (Role.PARTNER, Role.ADMIN):
        raise Unauthorized("Partner or admin role required")


def authorize_subject_access(actor: Actor, subject_id: str) -> None:
    """A subject reads their own location data; admins read anyone's."""
    if actor.role != Role.ADMIN and actor.id != str(subject_id):
        raise Unauthorized("Not allowed to read this location data")
