"""Tests for order number generators."""

import re

import pytest
from dispatch.order import numbering
from dispatch.order.numbering import (
    RandomOrderNumbers,
    SequentialOrderNumbers,
    order_numbers,
    set_order_numbers,
)


class TestGenerators:
    def test_random_format(self):
        number = RandomOrderNumbers().next()
        assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{8}", number)

    def test_random_numbers_differ(self):
        generator = RandomOrderNumbers()
        assert len({generator.next() for _ in range(100)}) == 100

    def test_sequential(self):
        generator = SequentialOrderNumbers(prefix="TST", start=41)
        assert generator.next() == "TST-000041"
        assert generator.next() == "TST-000042"


class TestRegistration:
    def test_unconfigured_generator_raises(self, monkeypatch):
        monkeypatch.setattr(numbering, "_generator", None)
        with pytest.raises(RuntimeError):
            order_numbers()

    def test_installed_generator_is_used(self):
        generator = SequentialOrderNumbers(prefix="X")
        set_order_numbers(generator)
        assert order_numbers() is generator
