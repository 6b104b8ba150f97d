"""Spatial partner index registry.

The default adapter reads partner positions from the Partner repository.
PARTNER_INDEX_ADAPTER selects another adapter in production.
"""

import os

_index_instance = None


def get_partner_index():
    """Return the configured partner index (singleton)."""
    global _index_instance
    if _index_instance is None:
        adapter = os.environ.get("PARTNER_INDEX_ADAPTER", "repository")
        if adapter == "repository":
            from dispatch.partner_index.repository_adapter import RepositoryPartnerIndex

            _index_instance = RepositoryPartnerIndex()
        else:
            raise ValueError(f"Unknown partner index adapter: {adapter}")
    return _index_instance


def reset_partner_index():
    """Reset the index singleton (useful for testing)."""
    global _index_instance
    _index_instance = None
