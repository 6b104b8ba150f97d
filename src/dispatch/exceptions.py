"""Typed domain errors for the Dispatch domain.

Rule violations derive from Protean's ``ValidationError`` and missing records
from ``ObjectNotFoundError``, so Protean's FastAPI exception handlers render
them as 400 and 404 responses. None of them are retried inside the domain;
callers decide whether to resend a code, widen a search radius, and so on.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class DispatchError(ValidationError):
    """A domain rule was violated."""

    field = "dispatch"

    def __init__(self, message: str):
        self.message = message
        super().__init__({self.field: [message]})

    def __str__(self) -> str:
        return self.message


class NotFound(ObjectNotFoundError):
    """A referenced order, customer, partner or code does not exist."""

    field = "dispatch"

    def __init__(self, message: str):
        self.message = message
        super().__init__({self.field: [message]})

    def __str__(self) -> str:
        return self.message


class OrderNotFound(NotFound):
    field = "order"


class CustomerNotFound(NotFound):
    field = "customer"


class PartnerNotFound(NotFound):
    field = "partner"


# ---------------------------------------------------------------------------
# Order lifecycle
# ---------------------------------------------------------------------------
class InvalidState(DispatchError):
    field = "status"


class InvalidTransition(InvalidState):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition order from {current} to {requested}")


class Unauthorized(DispatchError):
    field = "actor"


class AlreadyAssigned(DispatchError):
    field = "partner"


class PartnerIneligible(DispatchError):
    field = "partner"


# ---------------------------------------------------------------------------
# One-time codes
# ---------------------------------------------------------------------------
class OTPNotFound(NotFound):
    field = "code"


class OTPError(DispatchError):
    """Base for verification failures of an existing code."""

    field = "code"


class OTPExpired(OTPError):
    pass


class OTPMismatch(OTPError):
    def __init__(self, message: str, attempts_left: int):
        self.attempts_left = attempts_left
        super().__init__(message)


class OTPExhausted(OTPError):
    pass


class OTPAlreadyConsumed(OTPError):
    pass


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------
class InvalidQuery(DispatchError):
    field = "query"


class NoCandidate(DispatchError):
    field = "partner"


# ---------------------------------------------------------------------------
# Location integrity
# ---------------------------------------------------------------------------
class LocationRejected(DispatchError):
    field = "location"


class TooFrequent(LocationRejected):
    pass


class ImplausibleSpeed(LocationRejected):
    def __init__(self, message: str, distance_km: float, max_distance_km: float):
        self.distance_km = distance_km
        self.max_distance_km = max_distance_km
        super().__init__(message)


class SubjectNotFound(NotFound):
    field = "subject"


class LocationNotFound(NotFound):
    field = "location"
