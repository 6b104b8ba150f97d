"""Protean Engine runner for the dispatch domain.

Starts the Engine that processes events asynchronously in production
(partner workload, rating propagation and refund compensation).

Usage:
    python src/server.py
    python src/server.py --test-mode   # drain pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine

from dispatch.domain import dispatch
from dispatch.order.numbering import RandomOrderNumbers, set_order_numbers
from dispatch.utils.logging import configure_logging


async def run(test_mode: bool = False):
    configure_logging()
    dispatch.init()
    set_order_numbers(RandomOrderNumbers())

    engine = Engine(dispatch, test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Parcelrun Dispatch engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
