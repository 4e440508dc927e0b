"""Settlement business logic."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from meetstake.core.errors import AlreadySettledError, NotFoundError, PreconditionError
from meetstake.core.locks import meeting_locks
from meetstake.core.logging_config import get_logger
from meetstake.core.utils import resolve_now
from meetstake.db.models import MeetingStake, StakeRecord
from meetstake.services.status import check_in_deadline

logger = get_logger(__name__)


@dataclass(frozen=True)
class Distribution:
    """
    Split of a meeting's stakes into refunded (attended) and forfeited (absent).

    ``refunded_total + forfeited_total`` always equals the sum of all stake
    amounts. What happens to the forfeited amount is decided by the token
    transfer layer, not here.
    """

    refunded_total: Decimal = Decimal("0")
    forfeited_total: Decimal = Decimal("0")
    refunded_wallets: Tuple[str, ...] = field(default_factory=tuple)
    forfeited_wallets: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def refunded_count(self) -> int:
        return len(self.refunded_wallets)

    @property
    def forfeited_count(self) -> int:
        return len(self.forfeited_wallets)

    @property
    def total(self) -> Decimal:
        return self.refunded_total + self.forfeited_total

    def as_totals(self) -> Dict:
        return {
            "refunded_total": self.refunded_total,
            "forfeited_total": self.forfeited_total,
            "refunded_count": self.refunded_count,
            "forfeited_count": self.forfeited_count,
        }


def compute_distribution(stakes: Iterable[StakeRecord]) -> Distribution:
    """
    Partition stakes in a single pass.

    Checked-in stakes are refunded, everything else is forfeited. Pure
    function: the records are not modified.
    """
    refunded_total = Decimal("0")
    forfeited_total = Decimal("0")
    refunded: List[str] = []
    forfeited: List[str] = []

    for stake in stakes:
        if stake.has_checked_in:
            refunded_total += stake.amount
            refunded.append(stake.wallet_address)
        else:
            forfeited_total += stake.amount
            forfeited.append(stake.wallet_address)

    return Distribution(
        refunded_total=refunded_total,
        forfeited_total=forfeited_total,
        refunded_wallets=tuple(refunded),
        forfeited_wallets=tuple(forfeited),
    )


def settlement_summary(meeting: MeetingStake) -> Optional[Distribution]:
    """The frozen split of a settled meeting, or None if it is not settled yet."""
    if not meeting.is_settled:
        return None
    return compute_distribution(meeting.stakes)


def settle_meeting(db: Session, meeting_id: str, now: Optional[datetime] = None) -> Distribution:
    """
    Settle a meeting exactly once.

    Marks every checked-in stake as refunded and flips ``is_settled``, all in
    one transaction. The flip is a compare-and-set on ``is_settled`` so two
    settlements racing from different processes cannot both succeed.

    Raises:
        NotFoundError: If the meeting does not exist
        AlreadySettledError: If the meeting was settled before (nothing is recomputed)
        PreconditionError: If the check-in deadline has not passed yet
    """
    now = resolve_now(now)

    with meeting_locks.hold(meeting_id):
        meeting = db.query(MeetingStake).filter(MeetingStake.meeting_id == meeting_id).first()
        if not meeting:
            raise NotFoundError("Meeting not found")

        if meeting.is_settled:
            logger.warning("settlement_rejected", meeting_id=meeting_id, reason="already_settled")
            raise AlreadySettledError("Meeting has already been settled")

        deadline = check_in_deadline(meeting.end_time)
        if now <= deadline:
            raise PreconditionError("Check-in period has not ended yet", deadline=deadline)

        distribution = compute_distribution(meeting.stakes)

        try:
            claimed = db.query(MeetingStake).filter(
                MeetingStake.meeting_id == meeting_id,
                MeetingStake.is_settled.is_(False)
            ).update(
                {MeetingStake.is_settled: True, MeetingStake.settled_at: now},
                synchronize_session=False
            )
            if claimed != 1:
                # Another process settled between our read and this update
                raise AlreadySettledError("Meeting has already been settled")

            db.query(StakeRecord).filter(
                StakeRecord.meeting_id == meeting_id,
                StakeRecord.has_checked_in.is_(True)
            ).update({StakeRecord.is_refunded: True}, synchronize_session=False)

            db.commit()
        except Exception:
            db.rollback()
            raise

        # Bulk updates bypass the identity map
        db.expire_all()

    logger.info(
        "meeting_settled",
        meeting_id=meeting_id,
        refunded_total=str(distribution.refunded_total),
        forfeited_total=str(distribution.forfeited_total),
        refunded_count=distribution.refunded_count,
        forfeited_count=distribution.forfeited_count,
    )
    return distribution
