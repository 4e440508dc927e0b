"""Meeting stake lifecycle business logic.

Every mutating operation:
- runs under the per-meeting lock, so one process never interleaves two
  read-modify-write sequences on the same meeting;
- relies on a database constraint or a compare-and-set UPDATE for the
  invariant it protects, so separate processes cannot break it either;
- commits once, and rolls back on any error, so the ledger never holds a
  partially applied operation.

``now`` is injectable on every time-dependent operation; it defaults to the
current UTC time.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from meetstake.core import config
from meetstake.core.constants import AMOUNT_PRECISION, AMOUNT_SCALE
from meetstake.core.errors import (
    AlreadyCheckedInError,
    AlreadySettledError,
    AlreadyStakedError,
    CodeExpiredError,
    CodeImmutableError,
    ConflictError,
    InvalidCodeError,
    NotFoundError,
    NotStakedError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)
from meetstake.core.locks import meeting_locks
from meetstake.core.logging_config import get_logger
from meetstake.core.utils import format_amount, resolve_now, to_utc
from meetstake.db.models import MeetingStake, StakeRecord
from meetstake.services.attendance import (
    AttendanceCode,
    code_valid_until,
    codes_match,
    generate_code,
    is_code_expired,
)
from meetstake.services.status import staking_deadline

logger = get_logger(__name__)

AmountLike = Union[Decimal, int, str]


def parse_amount(value: AmountLike, field: str = "Amount") -> Decimal:
    """
    Convert an amount to Decimal and validate it.

    Floats are converted through ``str`` so ``0.1`` stays ``0.1``.

    Raises:
        ValidationError: If the amount is not a finite, positive number that
            fits the ledger's Numeric(38, 18) columns
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0")

    exponent = amount.normalize().as_tuple().exponent
    if isinstance(exponent, int) and exponent < -AMOUNT_SCALE:
        raise ValidationError(f"{field} supports at most {AMOUNT_SCALE} decimal places")
    if amount.adjusted() >= AMOUNT_PRECISION - AMOUNT_SCALE:
        raise ValidationError(f"{field} is too large")

    return amount


def get_meeting_stake(db: Session, meeting_id: str) -> MeetingStake:
    """Load a meeting or raise NotFoundError."""
    meeting = db.query(MeetingStake).filter(MeetingStake.meeting_id == meeting_id).first()
    if not meeting:
        raise NotFoundError("Meeting not found")
    return meeting


def create_staked_meeting(
    db: Session,
    meeting_id: str,
    event_id: str,
    organizer: str,
    required_stake: AmountLike,
    start_time: datetime,
    end_time: datetime,
    now: Optional[datetime] = None,
) -> str:
    """
    Create the stake requirement for a meeting.

    No tokens move here; escrow is performed by the caller through the
    token transfer layer.

    Raises:
        ValidationError: Non-positive stake, end before start, start not in the future
        ConflictError: If a stake requirement already exists for ``meeting_id``
    """
    now = resolve_now(now)
    required_stake = parse_amount(required_stake, "Required stake")
    start_utc = to_utc(start_time)
    end_utc = to_utc(end_time)

    if end_utc <= start_utc:
        raise ValidationError("End time must be after start time")

    if start_utc <= now:
        raise ValidationError("Start time must be in the future")

    with meeting_locks.hold(meeting_id):
        existing = db.query(MeetingStake.meeting_id).filter(MeetingStake.meeting_id == meeting_id).first()
        if existing:
            raise ConflictError("Meeting already exists")

        meeting = MeetingStake(
            meeting_id=meeting_id,
            event_id=event_id,
            organizer=organizer,
            required_stake=required_stake,
            start_time=start_utc,
            end_time=end_utc,
            is_settled=False,
            created_at=now,
        )

        try:
            db.add(meeting)
            db.commit()
        except IntegrityError:
            db.rollback()
            # Created by another process between the check and the insert
            raise ConflictError("Meeting already exists")

    logger.info(
        "meeting_stake_created",
        meeting_id=meeting_id,
        event_id=event_id,
        organizer=organizer,
        required_stake=str(required_stake),
    )
    return meeting_id


def stake_for_meeting(
    db: Session,
    meeting_id: str,
    amount: AmountLike,
    wallet_address: str,
    now: Optional[datetime] = None,
) -> StakeRecord:
    """
    Record a participant's stake.

    Raises:
        ValidationError: Non-positive amount, or amount differs from the required stake
        NotFoundError: Unknown meeting
        AlreadySettledError: Meeting is settled
        PreconditionError: Staking deadline (one hour before start) has passed
        AlreadyStakedError: Wallet already has a stake for this meeting
    """
    now = resolve_now(now)
    amount = parse_amount(amount, "Stake amount")

    with meeting_locks.hold(meeting_id):
        meeting = get_meeting_stake(db, meeting_id)

        if meeting.is_settled:
            raise AlreadySettledError("Meeting has already been settled")

        deadline = staking_deadline(meeting.start_time)
        if now > deadline:
            raise PreconditionError("Staking period has closed", deadline=deadline)

        if amount != meeting.required_stake:
            raise ValidationError(
                f"Stake amount must equal the required stake of {format_amount(meeting.required_stake)}"
            )

        existing = db.query(StakeRecord.id).filter(
            StakeRecord.meeting_id == meeting_id,
            StakeRecord.wallet_address == wallet_address
        ).first()
        if existing:
            raise AlreadyStakedError("Already staked for this meeting")

        stake = StakeRecord(
            meeting_id=meeting_id,
            wallet_address=wallet_address,
            amount=amount,
            staked_at=now,
            has_checked_in=False,
            is_refunded=False,
        )

        try:
            db.add(stake)
            db.commit()
        except IntegrityError:
            db.rollback()
            # The unique constraint (meeting_id, wallet_address) is authoritative
            raise AlreadyStakedError("Already staked for this meeting")

        db.refresh(stake)

    logger.info(
        "stake_recorded",
        meeting_id=meeting_id,
        wallet_address=wallet_address,
        amount=str(amount),
    )
    return stake


def has_staked(db: Session, meeting_id: str, wallet_address: str) -> bool:
    """Check whether a wallet has a stake for a meeting."""
    return get_stake_info(db, meeting_id, wallet_address) is not None


def get_stake_info(db: Session, meeting_id: str, wallet_address: str) -> Optional[StakeRecord]:
    return db.query(StakeRecord).filter(
        StakeRecord.meeting_id == meeting_id,
        StakeRecord.wallet_address == wallet_address
    ).first()


def get_meetings_for_wallet(db: Session, wallet_address: str) -> List[MeetingStake]:
    """Meetings the wallet staked for or organizes, earliest first."""
    staked_meeting_ids = select(StakeRecord.meeting_id).where(
        StakeRecord.wallet_address == wallet_address
    )
    return db.query(MeetingStake).filter(
        or_(
            MeetingStake.meeting_id.in_(staked_meeting_ids),
            MeetingStake.organizer == wallet_address,
        )
    ).order_by(MeetingStake.start_time, MeetingStake.meeting_id).all()


def get_all_meetings(db: Session) -> List[MeetingStake]:
    """All meetings, most recent first (admin overview)."""
    return db.query(MeetingStake).order_by(
        MeetingStake.start_time.desc(), MeetingStake.meeting_id
    ).all()


def _check_code_authority(meeting: MeetingStake, organizer_address: str, now: datetime) -> None:
    """Only the organizer may issue codes, and only while the meeting runs."""
    if meeting.organizer != organizer_address:
        raise PermissionDeniedError("Only the meeting organizer can generate attendance codes")

    if meeting.is_settled:
        raise AlreadySettledError("Meeting has already been settled")

    start = to_utc(meeting.start_time)
    end = to_utc(meeting.end_time)
    if now < start:
        raise PreconditionError("Meeting has not started yet", deadline=start)
    if now > end:
        raise PreconditionError("Meeting has already ended", deadline=end)


def _current_code(meeting: MeetingStake) -> AttendanceCode:
    return AttendanceCode(
        code=meeting.attendance_code,
        generated_at=to_utc(meeting.code_generated_at),
        valid_until=code_valid_until(meeting.end_time),
    )


def generate_attendance_code(
    db: Session,
    meeting_id: str,
    organizer_address: str,
    now: Optional[datetime] = None,
) -> AttendanceCode:
    """
    Issue the attendance code for a meeting.

    Idempotent: once a code exists it is returned unchanged, so a code that
    has already been shared is never invalidated by a second call.

    Raises:
        NotFoundError: Unknown meeting
        PermissionDeniedError: Caller is not the organizer
        AlreadySettledError: Meeting is settled
        PreconditionError: Outside [start_time, end_time]
    """
    now = resolve_now(now)

    with meeting_locks.hold(meeting_id):
        meeting = get_meeting_stake(db, meeting_id)
        _check_code_authority(meeting, organizer_address, now)

        if meeting.attendance_code:
            return _current_code(meeting)

        try:
            claimed = db.query(MeetingStake).filter(
                MeetingStake.meeting_id == meeting_id,
                MeetingStake.attendance_code.is_(None)
            ).update(
                {MeetingStake.attendance_code: generate_code(), MeetingStake.code_generated_at: now},
                synchronize_session=False
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        # Re-read: if the compare-and-set lost, this is the winner's code
        db.refresh(meeting)

    if claimed:
        logger.info("attendance_code_generated", meeting_id=meeting_id, organizer=organizer_address)
    return _current_code(meeting)


def regenerate_attendance_code(
    db: Session,
    meeting_id: str,
    organizer_address: str,
    now: Optional[datetime] = None,
) -> AttendanceCode:
    """
    Replace the attendance code with a fresh one.

    Only available when ALLOW_CODE_REGENERATION is enabled. Participants who
    already checked in keep their check-in; the previous code stops working.

    Raises:
        PreconditionError: No code has been generated yet
        CodeImmutableError: Regeneration is disabled
        (plus everything ``generate_attendance_code`` raises)
    """
    now = resolve_now(now)

    with meeting_locks.hold(meeting_id):
        meeting = get_meeting_stake(db, meeting_id)
        _check_code_authority(meeting, organizer_address, now)

        if not meeting.attendance_code:
            raise PreconditionError("No attendance code to regenerate; generate one first")

        if not config.settings.ALLOW_CODE_REGENERATION:
            raise CodeImmutableError("Attendance code is immutable once generated")

        try:
            meeting.attendance_code = generate_code()
            meeting.code_generated_at = now
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(meeting)

    logger.info("attendance_code_regenerated", meeting_id=meeting_id, organizer=organizer_address)
    return _current_code(meeting)


def submit_attendance_code(
    db: Session,
    meeting_id: str,
    code: str,
    wallet_address: str,
    now: Optional[datetime] = None,
) -> StakeRecord:
    """
    Check a participant in with the meeting's attendance code.

    Codes are compared case-insensitively. A submission at exactly
    ``end_time + CHECK_IN_GRACE_MINUTES`` is still accepted.

    Raises:
        NotFoundError: Unknown meeting
        NotStakedError: Wallet has no stake for this meeting
        AlreadySettledError: Meeting is settled
        AlreadyCheckedInError: Wallet already checked in
        CodeExpiredError: Check-in deadline has passed
        PreconditionError: No code has been generated yet
        InvalidCodeError: Code does not match
    """
    now = resolve_now(now)

    with meeting_locks.hold(meeting_id):
        meeting = get_meeting_stake(db, meeting_id)

        stake = get_stake_info(db, meeting_id, wallet_address)
        if not stake:
            raise NotStakedError("You have not staked for this meeting")

        if meeting.is_settled:
            raise AlreadySettledError("Meeting has already been settled")

        if stake.has_checked_in:
            raise AlreadyCheckedInError("You have already checked in for this meeting")

        if is_code_expired(meeting.end_time, now):
            raise CodeExpiredError("Attendance code has expired", deadline=code_valid_until(meeting.end_time))

        if not meeting.attendance_code:
            raise PreconditionError("Attendance code has not been generated yet")

        if not codes_match(meeting.attendance_code, code):
            logger.warning("attendance_code_rejected", meeting_id=meeting_id, wallet_address=wallet_address)
            raise InvalidCodeError("Invalid attendance code")

        try:
            claimed = db.query(StakeRecord).filter(
                StakeRecord.id == stake.id,
                StakeRecord.has_checked_in.is_(False)
            ).update(
                {StakeRecord.has_checked_in: True, StakeRecord.check_in_time: now},
                synchronize_session=False
            )
            if claimed != 1:
                raise AlreadyCheckedInError("You have already checked in for this meeting")
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(stake)

    logger.info("attendance_checked_in", meeting_id=meeting_id, wallet_address=wallet_address)
    return stake
