"""Dispatch domain API package."""

from dispatch.api.routes import location_router, order_router, partner_router

__all__ = ["order_router", "partner_router", "location_router"]
