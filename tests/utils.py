"""Shared test data: a fixed meeting timeline and some wallets."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from meetstake.services.staking import create_staked_meeting

# The meeting runs 14:00-15:00 UTC and is created two hours before it starts
T0 = datetime(2026, 11, 3, 12, 0, tzinfo=timezone.utc)
START = T0 + timedelta(hours=2)
END = T0 + timedelta(hours=3)
STAKING_DEADLINE = START - timedelta(hours=1)
CHECK_IN_DEADLINE = END + timedelta(minutes=15)

MEETING_ID = "mtg-42"
EVENT_ID = "gcal-abc123"
ORGANIZER = "0x01cf0e2f2f715450"
ALICE = "0x179b6b1cb6755e31"
BOB = "0xf3fcd2c1a78f5eee"
CAROL = "0xe03daebed8ca0615"
REQUIRED_STAKE = Decimal("10")


def at(**delta) -> datetime:
    """Instant relative to T0, e.g. ``at(hours=2, minutes=5)``."""
    return T0 + timedelta(**delta)


def make_meeting(
    session: Session,
    meeting_id: str = MEETING_ID,
    required_stake=REQUIRED_STAKE,
    start_time: datetime = START,
    end_time: datetime = END,
    organizer: str = ORGANIZER,
    now: datetime = T0,
) -> str:
    """Create a staked meeting on the fixed timeline."""
    return create_staked_meeting(
        session,
        meeting_id=meeting_id,
        event_id=EVENT_ID,
        organizer=organizer,
        required_stake=required_stake,
        start_time=start_time,
        end_time=end_time,
        now=now,
    )


def seed_meeting(
    session: Session,
    meeting_id: str,
    starts_in: timedelta,
    duration: timedelta = timedelta(hours=1),
    stakers=(),
    required_stake=REQUIRED_STAKE,
) -> datetime:
    """
    Create a meeting relative to the real clock and stake for ``stakers``.

    Creation and stakes are backdated so meetings that are already running
    or over can be set up for API tests. Returns the meeting start time.
    """
    from meetstake.core.utils import utcnow
    from meetstake.services.staking import stake_for_meeting

    start = utcnow() + starts_in
    created_at = start - timedelta(hours=3)
    create_staked_meeting(
        session,
        meeting_id=meeting_id,
        event_id=EVENT_ID,
        organizer=ORGANIZER,
        required_stake=required_stake,
        start_time=start,
        end_time=start + duration,
        now=created_at,
    )
    for wallet in stakers:
        stake_for_meeting(session, meeting_id, required_stake, wallet, now=created_at)
    return start


def parse_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp from a JSON response."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
