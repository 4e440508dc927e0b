"""Meeting stake endpoints.

Business-rule violations raised by the service layer (``StakingError``) are
turned into JSON error responses by the exception handler registered in
``meetstake.main``; endpoints only translate request schemas into service calls.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from meetstake.api.deps import get_db
from meetstake.core.rate_limit import limiter, RATE_LIMITS
from meetstake.core.sanitization import sanitize_meeting_id, sanitize_wallet_address
from meetstake.core.errors import ValidationError
from meetstake.schemas import (
    AttendanceCodeRequest,
    AttendanceCodeResponse,
    CheckinRequest,
    MeetingStakeCreate,
    MeetingStakeCreated,
    MeetingStakeStatus,
    SettlementResponse,
    StakeRequest,
    SuccessResponse,
)
from meetstake.services.settlement import settle_meeting
from meetstake.services.staking import (
    create_staked_meeting,
    generate_attendance_code,
    regenerate_attendance_code,
    stake_for_meeting,
    submit_attendance_code,
)
from meetstake.services.status import check_in_deadline, get_stake_status, staking_deadline

router = APIRouter()


def _meeting_id(meeting_id: str) -> str:
    """Validate the path parameter the same way request bodies are validated."""
    try:
        return sanitize_meeting_id(meeting_id)
    except ValueError as e:
        raise ValidationError(str(e))


@router.post("", response_model=MeetingStakeCreated, status_code=201)
@limiter.limit(RATE_LIMITS["create"])
def create_meeting_stake_endpoint(
    request: Request,
    meeting: MeetingStakeCreate,
    db: Session = Depends(get_db)
):
    """
    Create the stake requirement for a calendar meeting.

    The organizer (wallet address) fixes the amount every participant must
    stake. Token escrow itself happens in the wallet/contract layer; this
    endpoint only records the requirement in the ledger.

    Args:
        request: FastAPI Request (for rate limiting)
        meeting: MeetingStakeCreate with meeting_id, event_id, organizer,
                 required_stake and the meeting window (ISO 8601)
        db: Database session (injected)

    Returns:
        MeetingStakeCreated with the staking and check-in deadlines

    Raises:
        400 validation_error: non-positive stake, end before start, start in the past
        409 conflict: a stake requirement already exists for meeting_id

    Example:
        Request:
            POST /api/v1/meetings
            {
                "meeting_id": "mtg-42",
                "event_id": "gcal-abc123",
                "organizer": "0x01cf0e2f2f715450",
                "required_stake": "10",
                "start_time": "2026-11-03T15:00:00Z",
                "end_time": "2026-11-03T16:00:00Z"
            }

        Response (201):
            {
                "meeting_id": "mtg-42",
                "staking_deadline": "2026-11-03T14:00:00Z",
                "check_in_deadline": "2026-11-03T16:15:00Z"
            }
    """
    meeting_id = create_staked_meeting(
        db,
        meeting_id=meeting.meeting_id,
        event_id=meeting.event_id,
        organizer=meeting.organizer,
        required_stake=meeting.required_stake,
        start_time=meeting.start_time,
        end_time=meeting.end_time,
    )
    return MeetingStakeCreated(
        meeting_id=meeting_id,
        staking_deadline=staking_deadline(meeting.start_time),
        check_in_deadline=check_in_deadline(meeting.end_time),
    )


@router.get("/{meeting_id}", response_model=MeetingStakeStatus)
@limiter.limit(RATE_LIMITS["status"])
def get_meeting_stake_status_endpoint(
    request: Request,
    meeting_id: str,
    wallet_address: Optional[str] = Query(None, max_length=128),
    db: Session = Depends(get_db)
):
    """
    Get the current status of a staked meeting (read-only).

    Status is derived from the meeting times and the settlement flag at
    request time: upcoming, staking_closed, in_progress, check_in_period,
    pending_settlement or settled.

    If ``wallet_address`` is given, that participant's own stake is included
    under ``user_stake``. Other participants are listed with masked addresses.
    """
    meeting_id = _meeting_id(meeting_id)
    if wallet_address is not None:
        try:
            wallet_address = sanitize_wallet_address(wallet_address)
        except ValueError as e:
            raise ValidationError(str(e))
    return get_stake_status(db, meeting_id, wallet_address)


@router.post("/{meeting_id}/stakes", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["stake"])
def stake_endpoint(
    request: Request,
    meeting_id: str,
    stake_request: StakeRequest,
    db: Session = Depends(get_db)
):
    """
    Record a participant's stake.

    The amount must equal the meeting's required stake and staking closes one
    hour before the meeting starts. Each wallet can stake once per meeting.

    Raises:
        400 validation_error: amount differs from the required stake
        400 precondition_failed: staking deadline passed (deadline in body)
        404 not_found: unknown meeting
        409 already_staked / already_settled
    """
    stake_for_meeting(
        db,
        _meeting_id(meeting_id),
        amount=stake_request.amount,
        wallet_address=stake_request.wallet_address,
    )
    return SuccessResponse(success=True, message="Successfully staked for meeting")


@router.post("/{meeting_id}/attendance-code", response_model=AttendanceCodeResponse)
@limiter.limit(RATE_LIMITS["attendance_code"])
def generate_attendance_code_endpoint(
    request: Request,
    meeting_id: str,
    code_request: AttendanceCodeRequest,
    db: Session = Depends(get_db)
):
    """
    Get the attendance code for a running meeting (organizer only).

    The first call generates the code; later calls return the same code, so
    a code that was already read out in the meeting never stops working.

    Example:
        Request:
            POST /api/v1/meetings/mtg-42/attendance-code
            {"organizer_address": "0x01cf0e2f2f715450"}

        Response (200):
            {
                "code": "K7Q2XZ",
                "valid_until": "2026-11-03T16:15:00Z"
            }

    Raises:
        403 permission_denied: caller is not the organizer
        400 precondition_failed: meeting has not started or already ended
    """
    attendance_code = generate_attendance_code(
        db, _meeting_id(meeting_id), code_request.organizer_address
    )
    return AttendanceCodeResponse(code=attendance_code.code, valid_until=attendance_code.valid_until)


@router.post("/{meeting_id}/attendance-code/regenerate", response_model=AttendanceCodeResponse)
@limiter.limit(RATE_LIMITS["attendance_code"])
def regenerate_attendance_code_endpoint(
    request: Request,
    meeting_id: str,
    code_request: AttendanceCodeRequest,
    db: Session = Depends(get_db)
):
    """
    Replace the attendance code (organizer only).

    Disabled unless ALLOW_CODE_REGENERATION is set; returns 409
    code_immutable otherwise.
    """
    attendance_code = regenerate_attendance_code(
        db, _meeting_id(meeting_id), code_request.organizer_address
    )
    return AttendanceCodeResponse(code=attendance_code.code, valid_until=attendance_code.valid_until)


@router.post("/{meeting_id}/checkins", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["check_in"])
def checkin_endpoint(
    request: Request,
    meeting_id: str,
    checkin_request: CheckinRequest,
    db: Session = Depends(get_db)
):
    """
    Check in to a meeting with the attendance code.

    Codes are case-insensitive and accepted until 15 minutes after the
    meeting ends.

    Raises:
        400 invalid_code: code does not match
        400 code_expired: check-in deadline passed (deadline in body)
        403 not_staked: wallet has no stake for this meeting
        409 already_checked_in / already_settled
    """
    submit_attendance_code(
        db,
        _meeting_id(meeting_id),
        code=checkin_request.code,
        wallet_address=checkin_request.wallet_address,
    )
    return SuccessResponse(success=True, message="Attendance confirmed successfully")


@router.post("/{meeting_id}/settlement", response_model=SettlementResponse)
@limiter.limit(RATE_LIMITS["settle"])
def settle_endpoint(
    request: Request,
    meeting_id: str,
    db: Session = Depends(get_db)
):
    """
    Settle a meeting once its check-in period is over.

    Anyone may trigger settlement after the deadline. Attendees' stakes are
    marked refunded and the rest forfeited; the returned totals are what the
    token transfer layer should pay out. A meeting settles exactly once;
    later calls return 409 already_settled.

    Example:
        Response (200):
            {
                "meeting_id": "mtg-42",
                "refunded_total": "10",
                "forfeited_total": "10",
                "refunded_count": 1,
                "forfeited_count": 1
            }
    """
    meeting_id = _meeting_id(meeting_id)
    distribution = settle_meeting(db, meeting_id)
    return SettlementResponse(meeting_id=meeting_id, **distribution.as_totals())
