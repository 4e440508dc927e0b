"""Database models."""
from meetstake.db.models.meeting_stake import MeetingStake
from meetstake.db.models.stake_record import StakeRecord

__all__ = ["MeetingStake", "StakeRecord"]
