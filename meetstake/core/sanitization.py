"""Input sanitization utilities."""
import re
from typing import Optional

from meetstake.core.constants import (
    MAX_ATTENDANCE_CODE_LENGTH,
    MAX_EVENT_ID_LENGTH,
    MAX_MEETING_ID_LENGTH,
    MAX_WALLET_ADDRESS_LENGTH,
)

# Opaque identifiers coming from the calendar layer (UUIDs, Google event ids, ...)
_IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z0-9_.:@-]+$')

# Wallet addresses: Flow (0x + 16 hex), EVM (0x + 40 hex, checksummed) and
# similar chain identifiers. Case is preserved because some chains encode
# a checksum in it.
_WALLET_PATTERN = re.compile(r'^[A-Za-z0-9_.:-]+$')


def _sanitize_identifier(value: str, field: str, max_length: int, pattern: re.Pattern) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")

    sanitized = value.strip()

    if not sanitized:
        raise ValueError(f"{field} cannot be empty")

    if len(sanitized) > max_length:
        raise ValueError(f"{field} exceeds maximum length of {max_length} characters")

    if not pattern.match(sanitized):
        raise ValueError(f"{field} contains invalid characters")

    return sanitized


def sanitize_meeting_id(meeting_id: str) -> str:
    """
    Sanitize a meeting identifier.

    Meeting ids are opaque strings minted by the calendar layer. They are
    trimmed and checked for length and a conservative character set so they
    are safe to embed in URLs and log lines.

    Raises:
        ValueError: If the identifier is empty, too long or malformed
    """
    return _sanitize_identifier(meeting_id, "Meeting id", MAX_MEETING_ID_LENGTH, _IDENTIFIER_PATTERN)


def sanitize_event_id(event_id: str) -> str:
    return _sanitize_identifier(event_id, "Event id", MAX_EVENT_ID_LENGTH, _IDENTIFIER_PATTERN)


def sanitize_wallet_address(wallet_address: str) -> str:
    """
    Sanitize a wallet address.

    Only whitespace is stripped; the address is otherwise compared exactly,
    so ``0xABC`` and ``0xabc`` are different participants.

    Raises:
        ValueError: If the address is empty, too long or malformed
    """
    return _sanitize_identifier(
        wallet_address, "Wallet address", MAX_WALLET_ADDRESS_LENGTH, _WALLET_PATTERN
    )


def sanitize_attendance_code(code: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize attendance code input.

    Codes are alphanumeric. Submissions are trimmed and upper-cased so that
    a code read aloud or typed on a phone keyboard still matches.

    Args:
        code: The submitted attendance code
        max_length: Optional override of the maximum accepted length

    Returns:
        Sanitized attendance code (uppercase, trimmed)

    Raises:
        ValueError: If the code is empty, too long or not alphanumeric
    """
    if not isinstance(code, str):
        raise ValueError("Attendance code must be a string")

    limit = max_length or MAX_ATTENDANCE_CODE_LENGTH
    sanitized = code.strip().upper()

    if not sanitized:
        raise ValueError("Attendance code cannot be empty")

    if len(sanitized) > limit:
        raise ValueError(f"Attendance code exceeds maximum length of {limit} characters")

    if not re.match(r'^[A-Z0-9]+$', sanitized):
        raise ValueError("Attendance code can only contain letters and numbers")

    return sanitized
