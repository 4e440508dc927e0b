"""Admin endpoints (read-only ledger overview)."""
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from meetstake.api.deps import get_db, verify_admin_token
from meetstake.core.rate_limit import limiter, RATE_LIMITS
from meetstake.schemas import MeetingSummary
from meetstake.services.staking import get_all_meetings
from meetstake.services.status import summarize_meeting
from meetstake.core.utils import utcnow

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("/meetings", response_model=List[MeetingSummary])
@limiter.limit(RATE_LIMITS["admin_read"])
def get_all_meetings_endpoint(request: Request, db: Session = Depends(get_db)):
    """
    Get every staked meeting with its derived status (admin only).

    All statuses are evaluated against the same instant so the list is
    consistent with itself.
    """
    now = utcnow()
    return [summarize_meeting(meeting, now) for meeting in get_all_meetings(db)]
