"""Attendance code authority.

Generates the short code an organizer reads out during the meeting and checks
submissions against it. Length, alphabet and the check-in grace period come
from settings so they can be tuned (and tested) without touching the
lifecycle code.

Codes are not a cryptographic guarantee: 6 characters from A-Z0-9 give about
2.2 billion combinations, which together with check-in rate limiting makes
guessing within a validity window of minutes impractical.
"""
import hmac
import secrets
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from meetstake.core import config
from meetstake.core.utils import to_utc


class AttendanceCode(NamedTuple):
    code: str
    generated_at: datetime
    valid_until: datetime


def generate_code(length: Optional[int] = None, alphabet: Optional[str] = None) -> str:
    """Generate a random attendance code using the system CSPRNG."""
    length = length or config.settings.ATTENDANCE_CODE_LENGTH
    alphabet = alphabet or config.settings.ATTENDANCE_CODE_ALPHABET
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_code(code: str) -> str:
    return code.strip().upper()


def codes_match(expected: str, submitted: str) -> bool:
    """
    Compare a submitted code with the stored one.

    Comparison is case-insensitive and runs in constant time.
    """
    return hmac.compare_digest(
        normalize_code(expected).encode(),
        normalize_code(submitted).encode(),
    )


def check_in_grace() -> timedelta:
    return timedelta(minutes=config.settings.CHECK_IN_GRACE_MINUTES)


def code_valid_until(end_time: datetime) -> datetime:
    """Last instant (inclusive) at which a code for this meeting is accepted."""
    return to_utc(end_time) + check_in_grace()


def is_code_expired(end_time: datetime, now: datetime) -> bool:
    return to_utc(now) > code_valid_until(end_time)
