"""OneTimeCode aggregate — a short-lived proof-of-possession code.

One record exists per (subject, purpose, order) tuple, stored under an
identifier derived from the tuple. Re-issuing overwrites the record in place,
so at most one code can be active for a tuple at any time.

Lifecycle:
    ACTIVE → CONSUMED    (correct code)
    ACTIVE → EXPIRED     (verified after expires_at)
    ACTIVE → EXHAUSTED   (attempt ceiling reached)
    any    → ACTIVE      (re-issued)
"""

import hashlib
import hmac
from datetime import datetime, timedelta
from enum import Enum
from uuid import NAMESPACE_URL, uuid5

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from dispatch.domain import dispatch
from dispatch.exceptions import OTPAlreadyConsumed, OTPExhausted, OTPExpired, OTPMismatch
from dispatch.otp.events import CodeIssued, CodeRejected, CodeVerified


class CodePurpose(Enum):
    PICKUP = "Pickup"
    DELIVERY = "Delivery"


class CodeStatus(Enum):
    ACTIVE = "Active"
    CONSUMED = "Consumed"
    EXPIRED = "Expired"
    EXHAUSTED = "Exhausted"


def code_key(subject_id: str, purpose: str, order_id: str | None = None) -> str:
    """Deterministic record identifier for a (subject, purpose, order) tuple."""
    return str(uuid5(NAMESPACE_URL, f"otp:{subject_id}:{purpose}:{order_id or '-'}"))


def hash_code(key: str, code: str) -> str:
    return hashlib.sha256(f"{key}:{code}".encode()).hexdigest()


@dispatch.aggregate
class OneTimeCode:
    subject_id = Identifier(required=True)
    purpose = String(required=True, choices=CodePurpose)
    order_id = Identifier()
    code_hash = String(required=True, max_length=64)
    status = String(choices=CodeStatus, default=CodeStatus.ACTIVE.value)
    consumed = Boolean(default=False)
    attempts = Integer(default=0, min_value=0)
    max_attempts = Integer(required=True, min_value=1)
    issued_at = DateTime(required=True)
    expires_at = DateTime(required=True)
    consumed_at = DateTime()

    # -------------------------------------------------------------------
    # Issuance
    # -------------------------------------------------------------------
    @classmethod
    def issue(
        cls,
        subject_id: str,
        purpose: str,
        code: str,
        ttl_minutes: int,
        max_attempts: int,
        now: datetime,
        order_id: str | None = None,
    ):
        """Create the record for a tuple that has never had a code."""
        key = code_key(subject_id, purpose, order_id)
        record = cls(
            id=key,
            subject_id=subject_id,
            purpose=purpose,
            order_id=order_id,
            code_hash=hash_code(key, code),
            status=CodeStatus.ACTIVE.value,
            consumed=False,
            attempts=0,
            max_attempts=max_attempts,
            issued_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
        )
        record._raise_issued()
        return record

    def reissue(self, code: str, ttl_minutes: int, max_attempts: int, now: datetime) -> None:
        """Replace the stored code; the previous code can no longer be verified."""
        self.code_hash = hash_code(str(self.id), code)
        self.status = CodeStatus.ACTIVE.value
        self.consumed = False
        self.attempts = 0
        self.max_attempts = max_attempts
        self.issued_at = now
        self.expires_at = now + timedelta(minutes=ttl_minutes)
        self.consumed_at = None
        self._raise_issued()

    def _raise_issued(self) -> None:
        self.raise_(
            CodeIssued(
                code_id=str(self.id),
                subject_id=str(self.subject_id),
                purpose=self.purpose,
                order_id=str(self.order_id) if self.order_id else None,
                expires_at=self.expires_at,
                issued_at=self.issued_at,
            )
        )

    # -------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------
    def is_active(self, now: datetime) -> bool:
        return CodeStatus(self.status) == CodeStatus.ACTIVE and now <= self.expires_at

    def redeem(self, submitted_code: str, now: datetime) -> None:
        """Verify a submitted code, recording the outcome on the record.

        The record is mutated before any error is raised, so the caller must
        persist it whether or not this method raises.
        """
        status = CodeStatus(self.status)
        # An expired record was consumed when its expiry was first reported
        if status in (CodeStatus.CONSUMED, CodeStatus.EXPIRED):
            raise OTPAlreadyConsumed("Code has already been used")
        if status == CodeStatus.EXHAUSTED:
            raise OTPExhausted("Too many failed attempts, request a new code")

        if now > self.expires_at:
            self._close(CodeStatus.EXPIRED, now)
            self._raise_rejected("expired", now)
            raise OTPExpired("Code has expired")

        if not hmac.compare_digest(self.code_hash, hash_code(str(self.id), str(submitted_code))):
            self.attempts = (self.attempts or 0) + 1
            attempts_left = max(0, self.max_attempts - self.attempts)
            if attempts_left == 0:
                self._close(CodeStatus.EXHAUSTED, now)
            self._raise_rejected("mismatch", now)
            raise OTPMismatch(f"Incorrect code, {attempts_left} attempt(s) left", attempts_left=attempts_left)

        self._close(CodeStatus.CONSUMED, now)
        self.raise_(
            CodeVerified(
                code_id=str(self.id),
                subject_id=str(self.subject_id),
                purpose=self.purpose,
                order_id=str(self.order_id) if self.order_id else None,
                verified_at=now,
            )
        )

    def _close(self, status: CodeStatus, now: datetime) -> None:
        self.status = status.value
        self.consumed = True
        self.consumed_at = now

    def _raise_rejected(self, reason: str, now: datetime) -> None:
        self.raise_(
            CodeRejected(
                code_id=str(self.id),
                subject_id=str(self.subject_id),
                purpose=self.purpose,
                order_id=str(self.order_id) if self.order_id else None,
                reason=reason,
                attempts=self.attempts or 0,
                rejected_at=now,
            )
        )
