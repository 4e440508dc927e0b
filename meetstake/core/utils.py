"""General utility functions."""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return ``now`` normalized to UTC, or the current time if not given."""
    if now is None:
        return utcnow()
    return to_utc(now)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # Assume UTC if no timezone (SQLite drops tzinfo on the way back)
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string in UTC, or None."""
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def mask_wallet_address(address: str) -> str:
    """Shorten a wallet address for public listings (``0x1234...abcd``)."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_amount(amount: Decimal) -> str:
    """Plain decimal string without trailing zeros (``10``, ``2.5``)."""
    return format(amount.normalize(), "f")
