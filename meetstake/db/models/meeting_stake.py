"""MeetingStake model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship

from meetstake.core.constants import (
    MAX_ATTENDANCE_CODE_LENGTH,
    MAX_EVENT_ID_LENGTH,
    MAX_MEETING_ID_LENGTH,
    MAX_WALLET_ADDRESS_LENGTH,
)
from meetstake.db.base import Base
from meetstake.db.types import Amount


class MeetingStake(Base):
    """Stake requirement for one meeting. Frozen once ``is_settled`` is true."""

    __tablename__ = "meeting_stakes"

    meeting_id = Column(String(MAX_MEETING_ID_LENGTH), primary_key=True)
    event_id = Column(String(MAX_EVENT_ID_LENGTH), nullable=False)
    organizer = Column(String(MAX_WALLET_ADDRESS_LENGTH), nullable=False, index=True)
    required_stake = Column(Amount(), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    attendance_code = Column(String(MAX_ATTENDANCE_CODE_LENGTH), nullable=True)
    code_generated_at = Column(DateTime(timezone=True), nullable=True)
    is_settled = Column(Boolean, nullable=False, default=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    stakes = relationship(
        "StakeRecord",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="StakeRecord.id",
    )

    __table_args__ = (
        CheckConstraint("required_stake > 0", name="ck_required_stake_positive"),
    )

    def __repr__(self) -> str:
        return f"<MeetingStake {self.meeting_id} settled={self.is_settled} stakes={len(self.stakes)}>"
