"""One-time code events. Codes and hashes never appear in event payloads."""

from protean.fields import DateTime, Identifier, Integer, String

from dispatch.domain import dispatch


@dispatch.event(part_of="OneTimeCode")
class CodeIssued:
    """A new code was issued, superseding any previous code for the same tuple."""

    __version__ = 1

    code_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    purpose = String(required=True)
    order_id = Identifier()
    expires_at = DateTime(required=True)
    issued_at = DateTime(required=True)


@dispatch.event(part_of="OneTimeCode")
class CodeVerified:
    """A submitted code matched and the record was consumed."""

    __version__ = 1

    code_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    purpose = String(required=True)
    order_id = Identifier()
    verified_at = DateTime(required=True)


@dispatch.event(part_of="OneTimeCode")
class CodeRejected:
    """A verification attempt failed."""

    __version__ = 1

    code_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    purpose = String(required=True)
    order_id = Identifier()
    reason = String(required=True)
    attempts = Integer(required=True)
    rejected_at = DateTime(required=True)
