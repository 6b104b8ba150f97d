"""Order number generators.

Handlers receive a generator explicitly through ``set_order_numbers``; there is
no fallback to an implicit global id factory.
"""

import itertools
import secrets
from datetime import UTC, datetime


class RandomOrderNumbers:
    """``ORD-YYYYMMDD-XXXXXXXX``: booking date plus 32 random bits in hex."""

    prefix = "ORD"

    def next(self) -> str:
        return f"{self.prefix}-{datetime.now(UTC):%Y%m%d}-{secrets.token_hex(4).upper()}"


class SequentialOrderNumbers:
    """Predictable numbers for tests and fixtures."""

    def __init__(self, prefix: str = "ORD", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def next(self) -> str:
        return f"{self.prefix}-{next(self._counter):06d}"


_generator = None


def set_order_numbers(generator) -> None:
    """Install the generator used by order creation."""
    global _generator
    _generator = generator


def order_numbers():
    if _generator is None:
        raise RuntimeError("No order number generator configured; call set_order_numbers() at startup")
    return _generator
