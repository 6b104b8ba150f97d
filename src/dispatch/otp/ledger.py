"""OTPLedger — issues and verifies one-time codes.

The ledger is the single source of truth for pickup and delivery codes. It
returns raw codes to the caller (who hands them to a delivery channel) and
only ever stores their hashes.

Verification persists the record's new state before raising, so attempt
counts and expiry survive a failed verification. Call ``verify`` outside a
unit of work; a surrounding unit of work that rolls back on the raised error
would discard the attempt count.
"""

import secrets
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from dispatch.config import OTPSettings, settings
from dispatch.exceptions import OTPError, OTPNotFound
from dispatch.otp.code import CodePurpose, OneTimeCode, code_key

logger = structlog.get_logger(__name__)


def generate_code(length: int = 6) -> str:
    """Fixed-length numeric code from a CSPRNG (leading zeros preserved)."""
    return f"{secrets.randbelow(10**length):0{length}d}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class OTPLedger:
    def __init__(self, otp_settings: OTPSettings | None = None, clock: Callable[[], datetime] | None = None):
        self.settings = otp_settings or settings.otp
        self.clock = clock or _utcnow

    @property
    def _repo(self):
        return current_domain.repository_for(OneTimeCode)

    def _find(self, subject_id: str, purpose: str, order_id: str | None) -> OneTimeCode | None:
        try:
            return self._repo.get(code_key(subject_id, purpose, order_id))
        except ObjectNotFoundError:
            return None

    def issue(
        self,
        subject_id: str,
        purpose: CodePurpose | str,
        order_id: str | None = None,
        ttl_minutes: int | None = None,
    ) -> str:
        """Issue a fresh code for the tuple and return it.

        Any earlier code for the same tuple stops verifying immediately.
        """
        purpose = CodePurpose(purpose).value
        ttl_minutes = ttl_minutes if ttl_minutes is not None else self.settings.ttl_minutes
        code = generate_code(self.settings.code_length)
        now = self.clock()

        record = self._find(subject_id, purpose, order_id)
        if record is None:
            record = OneTimeCode.issue(
                subject_id=subject_id,
                purpose=purpose,
                order_id=order_id,
                code=code,
                ttl_minutes=ttl_minutes,
                max_attempts=self.settings.max_attempts,
                now=now,
            )
        else:
            record.reissue(code, ttl_minutes=ttl_minutes, max_attempts=self.settings.max_attempts, now=now)

        self._repo.add(record)
        logger.info(
            "One-time code issued",
            subject_id=str(subject_id),
            purpose=purpose,
            order_id=order_id,
            expires_at=record.expires_at.isoformat(),
        )
        return code

    def verify(
        self,
        subject_id: str,
        purpose: CodePurpose | str,
        order_id: str | None,
        submitted_code: str,
    ) -> OneTimeCode:
        """Verify a submitted code, consuming the record on success.

        Raises:
            OTPNotFound: no code was ever issued for the tuple.
            OTPAlreadyConsumed: the code was already used, or its expiry was already reported.
            OTPExpired: the code is past its expiry.
            OTPExhausted: the attempt ceiling was reached earlier.
            OTPMismatch: the code is wrong (attempts are counted).
        """
        purpose = CodePurpose(purpose).value
        record = self._find(subject_id, purpose, order_id)
        if record is None:
            raise OTPNotFound(f"No {purpose.lower()} code has been issued")

        try:
            record.redeem(submitted_code, self.clock())
        except OTPError as exc:
            self._repo.add(record)
            logger.warning(
                "One-time code rejected",
                subject_id=str(subject_id),
                purpose=purpose,
                order_id=order_id,
                reason=type(exc).__name__,
                attempts=record.attempts,
            )
            raise

        self._repo.add(record)
        logger.info("One-time code verified", subject_id=str(subject_id), purpose=purpose, order_id=order_id)
        return record

    def active_record(self, subject_id: str, purpose: CodePurpose | str, order_id: str | None = None):
        """Return the active record for the tuple, or None."""
        record = self._find(subject_id, CodePurpose(purpose).value, order_id)
        if record is not None and record.is_active(self.clock()):
            return record
        return None
