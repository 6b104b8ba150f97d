"""Customer directory registry.

CUSTOMER_DIRECTORY_ADAPTER selects the adapter: ``fake`` (default) knows only
registered customers, ``open`` accepts every customer id and is meant for
local development against the API.
"""

import os

_directory_instance = None


def get_customer_directory():
    """Return the configured customer directory (singleton)."""
    global _directory_instance
    if _directory_instance is None:
        adapter = os.environ.get("CUSTOMER_DIRECTORY_ADAPTER", "fake")
        if adapter in ("fake", "open"):
            from dispatch.customers.fake_adapter import FakeCustomerDirectory

            _directory_instance = FakeCustomerDirectory(accept_all=adapter == "open")
        else:
            raise ValueError(f"Unknown customer directory adapter: {adapter}")
    return _directory_instance


def reset_customer_directory():
    """Reset the directory singleton (useful for testing)."""
    global _directory_instance
    _directory_instance = None
