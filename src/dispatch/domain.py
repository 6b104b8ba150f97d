"""Dispatch bounded context — Delivery Orders, Partner Matching and Custody Codes.

Handles the delivery order lifecycle from creation to completion: pricing,
partner dispatch, one-time pickup/delivery codes and plausibility checks on
partner-reported GPS telemetry. Uses CQRS because every workflow is a short,
linear state change on a single aggregate.
"""

import structlog
from protean.domain import Domain

dispatch = Domain(name="dispatch")

logger = structlog.get_logger(__name__)
