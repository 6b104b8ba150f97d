"""Code delivery port — abstract interface for handing one-time codes to a person."""

from abc import ABC, abstractmethod


class CodeDeliveryPort(ABC):
    """Abstract interface for code delivery adapters (SMS, push, in-app)."""

    @abstractmethod
    def deliver(self, code: str, subject_id: str, purpose: str, order_number: str | None = None) -> dict:
        """Deliver a code to the subject.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
