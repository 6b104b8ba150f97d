"""Fake code channel — records delivered codes for testing."""

from uuid import uuid4

from dispatch.channel.port import CodeDeliveryPort


class FakeCodeChannel(CodeDeliveryPort):
    """Code channel that keeps deliveries in memory for test assertions."""

    def __init__(self):
        self.deliveries: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Code delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Code delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def deliver(self, code: str, subject_id: str, purpose: str, order_number: str | None = None) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"otp-{uuid4().hex[:12]}"
        self.deliveries.append(
            {
                "message_id": message_id,
                "code": code,
                "subject_id": subject_id,
                "purpose": purpose,
                "order_number": order_number,
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def last_code(self, purpose: str, order_number: str | None = None) -> str | None:
        """Most recent code delivered for a purpose (and order, if given)."""
        for delivery in reversed(self.deliveries):
            if delivery["purpose"] != purpose:
                continue
            if order_number is not None and delivery["order_number"] != order_number:
                continue
            return delivery["code"]
        return None

    def reset(self):
        """Clear deliveries (useful between tests)."""
        self.deliveries.clear()
        self.should_succeed = True
        self.failure_reason = "Code delivery failed"
