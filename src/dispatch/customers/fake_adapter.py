"""Fake customer directory — an in-memory set of known customers."""

from dispatch.customers.port import CustomerDirectoryPort


class FakeCustomerDirectory(CustomerDirectoryPort):
    def __init__(self, accept_all: bool = False):
        self.known: set[str] = set()
        self.accept_all = accept_all

    def configure(self, accept_all: bool = False):
        self.accept_all = accept_all

    def register(self, *customer_ids: str) -> None:
        self.known.update(str(customer_id) for customer_id in customer_ids)

    def exists(self, customer_id: str) -> bool:
        return self.accept_all or str(customer_id) in self.known

    def reset(self):
        self.known.clear()
        self.accept_all = False
