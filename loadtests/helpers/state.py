"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class PartnerState:
    """Tracks state for a single simulated delivery partner."""

    partner_id: str | None = None
    position: dict | None = None
    fixes_sent: int = 0
    is_online: bool = False


@dataclass
class OrderState:
    """Tracks state for a single order lifecycle."""

    order_id: str | None = None
    order_number: str | None = None
    customer_id: str | None = None
    partner_id: str | None = None
    current_status: str = "Pending"


@dataclass
class CustomerState:
    """Tracks the orders a simulated customer has booked."""

    customer_id: str | None = None
    order_ids: list[str] = field(default_factory=list)
