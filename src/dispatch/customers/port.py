"""Customer directory port — the only thing dispatch asks of the user service."""

from abc import ABC, abstractmethod


class CustomerDirectoryPort(ABC):
    @abstractmethod
    def exists(self, customer_id: str) -> bool:
        """True if the customer is known and may place orders."""
        ...
