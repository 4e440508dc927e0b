"""Staking error taxonomy.

Every business-rule violation raised by the service layer is a ``StakingError``.
They subclass ``ValueError`` so callers that only care about "the request was
rejected" can keep catching ``ValueError``; the API layer maps each class to an
HTTP status through ``code`` and ``status_code``.
"""
from datetime import datetime
from typing import Optional


class StakingError(ValueError):
    """Base class for rejected staking operations. No state was changed."""

    code = "staking_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StakingError):
    """Malformed input: bad amount, bad time range, missing field."""

    code = "validation_error"
    status_code = 400


class NotFoundError(StakingError):
    code = "not_found"
    status_code = 404


class PermissionDeniedError(StakingError):
    """Caller is not allowed to perform the operation (e.g. not the organizer)."""

    code = "permission_denied"
    status_code = 403


class NotStakedError(StakingError):
    code = "not_staked"
    status_code = 403


class InvalidCodeError(StakingError):
    code = "invalid_code"
    status_code = 400


class ConflictError(StakingError):
    """Operation conflicts with the current ledger state."""

    code = "conflict"
    status_code = 409


class AlreadyStakedError(ConflictError):
    code = "already_staked"


class AlreadyCheckedInError(ConflictError):
    code = "already_checked_in"


class AlreadySettledError(ConflictError):
    code = "already_settled"


class CodeImmutableError(ConflictError):
    code = "code_immutable"


class PreconditionError(StakingError):
    """
    A time-based precondition does not hold yet (or any more).

    ``deadline`` is the instant the caller should compare against, so the
    client can render "try again after X" or "closed since X".
    """

    code = "precondition_failed"
    status_code = 400

    def __init__(self, message: str, deadline: Optional[datetime] = None):
        if deadline is not None:
            message = f"{message} (deadline: {deadline.isoformat()})"
        super().__init__(message)
        self.deadline = deadline


class CodeExpiredError(PreconditionError):
    code = "code_expired"
