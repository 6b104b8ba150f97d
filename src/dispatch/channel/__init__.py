"""Code channel registry — pluggable delivery of pickup and delivery codes.

Uses the fake channel by default. A real SMS or push adapter is selected
with the CODE_CHANNEL_ADAPTER environment variable in production.
"""

import os

_channel_instance = None


def get_code_channel():
    """Return the configured code delivery adapter (singleton)."""
    global _channel_instance
    if _channel_instance is None:
        adapter = os.environ.get("CODE_CHANNEL_ADAPTER", "fake")
        if adapter == "fake":
            from dispatch.channel.fake_adapter import FakeCodeChannel

            _channel_instance = FakeCodeChannel()
        else:
            raise ValueError(f"Unknown code channel adapter: {adapter}")
    return _channel_instance


def reset_code_channel():
    """Reset the channel singleton (useful for testing)."""
    global _channel_instance
    _channel_instance = None
