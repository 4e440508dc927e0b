"""StakeRecord model."""
from datetime import datetime, timezone as tz
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from meetstake.core.constants import (
    MAX_MEETING_ID_LENGTH,
    MAX_WALLET_ADDRESS_LENGTH,
)
from meetstake.db.base import Base
from meetstake.db.types import Amount


class StakeRecord(Base):
    __tablename__ = "stake_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    meeting_id = Column(
        String(MAX_MEETING_ID_LENGTH),
        ForeignKey("meeting_stakes.meeting_id", ondelete="CASCADE"),
        nullable=False,
    )
    wallet_address = Column(String(MAX_WALLET_ADDRESS_LENGTH), nullable=False)
    amount = Column(Amount(), nullable=False)
    staked_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    has_checked_in = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    is_refunded = Column(Boolean, nullable=False, default=False)

    # Relationships
    meeting = relationship("MeetingStake", back_populates="stakes")

    __table_args__ = (
        # One stake per participant per meeting, enforced by the database
        UniqueConstraint("meeting_id", "wallet_address", name="uq_meeting_wallet"),
        Index("idx_stake_records_wallet", "wallet_address"),
        CheckConstraint("amount > 0", name="ck_stake_amount_positive"),
        # A refund always follows a verified check-in
        CheckConstraint("NOT is_refunded OR has_checked_in", name="ck_refund_requires_checkin"),
    )
