"""Wallet-scoped endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from meetstake.api.deps import get_db
from meetstake.core.errors import ValidationError
from meetstake.core.rate_limit import limiter, RATE_LIMITS
from meetstake.core.sanitization import sanitize_wallet_address
from meetstake.core.utils import utcnow
from meetstake.schemas import MeetingSummary
from meetstake.services.staking import get_meetings_for_wallet
from meetstake.services.status import summarize_meeting

router = APIRouter()


@router.get("/{wallet_address}/meetings", response_model=List[MeetingSummary])
@limiter.limit(RATE_LIMITS["status"])
def get_wallet_meetings_endpoint(
    request: Request,
    wallet_address: str,
    db: Session = Depends(get_db)
):
    """
    List meetings a wallet has staked for or organizes, earliest first.

    Example:
        Request:
            GET /api/v1/wallets/0x01cf0e2f2f715450/meetings

        Response (200):
            [
                {
                    "meeting_id": "mtg-42",
                    "event_id": "gcal-abc123",
                    "organizer": "0x01cf0e2f2f715450",
                    "required_stake": "10",
                    "start_time": "2026-11-03T15:00:00+00:00",
                    "end_time": "2026-11-03T16:00:00+00:00",
                    "status": "upcoming",
                    "is_settled": false,
                    "settled_at": null,
                    "has_attendance_code": false,
                    "staking_deadline": "2026-11-03T14:00:00+00:00",
                    "check_in_deadline": "2026-11-03T16:15:00+00:00"
                }
            ]
    """
    try:
        wallet_address = sanitize_wallet_address(wallet_address)
    except ValueError as e:
        raise ValidationError(str(e))

    now = utcnow()
    return [summarize_meeting(meeting, now) for meeting in get_meetings_for_wallet(db, wallet_address)]
