"""Read-only status projection for staked meetings.

Status is never stored. It is recomputed from the four timestamps
(start, end, staking deadline, check-in deadline) and ``is_settled`` every
time it is requested, so it cannot drift from the ledger.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from meetstake.core import config
from meetstake.core.errors import NotFoundError
from meetstake.core.utils import isoformat, mask_wallet_address, resolve_now, to_utc
from meetstake.db.models import MeetingStake, StakeRecord
from meetstake.services.attendance import code_valid_until


class StakeStatus(str, Enum):
    """Lifecycle states, in the only order they can occur."""

    UPCOMING = "upcoming"
    STAKING_CLOSED = "staking_closed"
    IN_PROGRESS = "in_progress"
    CHECK_IN_PERIOD = "check_in_period"
    PENDING_SETTLEMENT = "pending_settlement"
    SETTLED = "settled"


STATUS_ORDER = list(StakeStatus)


def staking_deadline(start_time: datetime) -> datetime:
    """Last instant (inclusive) at which a participant may stake."""
    return to_utc(start_time) - timedelta(minutes=config.settings.STAKING_DEADLINE_MINUTES)


def check_in_deadline(end_time: datetime) -> datetime:
    """Last instant (inclusive) at which an attendance code is accepted."""
    return code_valid_until(end_time)


def derive_status(meeting: MeetingStake, now: Optional[datetime] = None) -> StakeStatus:
    """
    Derive the lifecycle status of a meeting at ``now``.

    Conditions are evaluated top to bottom and the first match wins. Ranges
    touch at their boundaries, so this precedence is what decides the status
    at exactly the start time, end time or a deadline.
    """
    now = resolve_now(now)
    start = to_utc(meeting.start_time)
    end = to_utc(meeting.end_time)

    if now > check_in_deadline(end):
        return StakeStatus.SETTLED if meeting.is_settled else StakeStatus.PENDING_SETTLEMENT
    if now > end:
        return StakeStatus.CHECK_IN_PERIOD
    if now >= start:
        return StakeStatus.IN_PROGRESS
    if now > staking_deadline(start):
        return StakeStatus.STAKING_CLOSED
    return StakeStatus.UPCOMING


def compute_stats(stakes: List[StakeRecord]) -> Dict:
    total_staked = sum((stake.amount for stake in stakes), Decimal("0"))
    total_attended = sum(1 for stake in stakes if stake.has_checked_in)
    return {
        "total_staked": total_staked,
        "total_stakers": len(stakes),
        "total_attended": total_attended,
        "total_absent": len(stakes) - total_attended,
    }


def serialize_stake(stake: StakeRecord) -> Dict:
    return {
        "wallet_address": stake.wallet_address,
        "amount": stake.amount,
        "staked_at": isoformat(stake.staked_at),
        "has_checked_in": stake.has_checked_in,
        "check_in_time": isoformat(stake.check_in_time),
        "is_refunded": stake.is_refunded,
    }


def summarize_meeting(meeting: MeetingStake, now: Optional[datetime] = None) -> Dict:
    """Meeting fields plus derived status and deadlines."""
    return {
        "meeting_id": meeting.meeting_id,
        "event_id": meeting.event_id,
        "organizer": meeting.organizer,
        "required_stake": meeting.required_stake,
        "start_time": isoformat(meeting.start_time),
        "end_time": isoformat(meeting.end_time),
        "status": derive_status(meeting, now).value,
        "is_settled": meeting.is_settled,
        "settled_at": isoformat(meeting.settled_at),
        "has_attendance_code": meeting.attendance_code is not None,
        "staking_deadline": isoformat(staking_deadline(meeting.start_time)),
        "check_in_deadline": isoformat(check_in_deadline(meeting.end_time)),
    }


def get_stake_status(
    db: Session,
    meeting_id: str,
    wallet_address: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Build the full status projection for a meeting.

    Args:
        db: Database session
        meeting_id: Meeting to project
        wallet_address: Optional participant whose own stake is included
        now: Evaluation time (defaults to current UTC time)

    Returns:
        Dict with ``meeting`` (summary), ``stats``, ``user_stake`` (or None),
        ``participants`` (masked addresses) and ``settlement`` (the frozen
        split once settled, otherwise None).

    Raises:
        NotFoundError: If the meeting does not exist
    """
    # Imported here: settlement imports this module for its deadline helpers
    from meetstake.services.settlement import settlement_summary

    meeting = db.query(MeetingStake).filter(MeetingStake.meeting_id == meeting_id).first()
    if not meeting:
        raise NotFoundError("Meeting not found")

    user_stake = None
    if wallet_address:
        for stake in meeting.stakes:
            if stake.wallet_address == wallet_address:
                user_stake = serialize_stake(stake)
                break

    distribution = settlement_summary(meeting)

    return {
        "meeting": summarize_meeting(meeting, now),
        "stats": compute_stats(meeting.stakes),
        "user_stake": user_stake,
        "participants": [
            {
                "wallet_address": mask_wallet_address(stake.wallet_address),
                "has_checked_in": stake.has_checked_in,
                "is_refunded": stake.is_refunded,
            }
            for stake in meeting.stakes
        ],
        "settlement": distribution.as_totals() if distribution else None,
    }
