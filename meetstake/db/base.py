"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from meetstake.db.models.meeting_stake import MeetingStake  # noqa: F401, E402
from meetstake.db.models.stake_record import StakeRecord  # noqa: F401, E402
