"""Meeting stake schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from meetstake.core.constants import AMOUNT_PRECISION, AMOUNT_SCALE
from meetstake.core.sanitization import (
    sanitize_attendance_code,
    sanitize_event_id,
    sanitize_meeting_id,
    sanitize_wallet_address,
)
from meetstake.core.utils import format_amount

# Amounts go over the wire as plain decimal strings ("10", "2.5"), never floats
AmountOut = Annotated[Decimal, PlainSerializer(format_amount, return_type=str, when_used="json")]
AmountIn = Annotated[Decimal, Field(gt=0, max_digits=AMOUNT_PRECISION, decimal_places=AMOUNT_SCALE)]


class StrictRequest(BaseModel):
    """Request bodies reject unknown fields instead of silently dropping them."""
    model_config = ConfigDict(extra="forbid")


# Requests

class MeetingStakeCreate(StrictRequest):
    meeting_id: str = Field(..., min_length=1)
    event_id: str = Field(..., min_length=1)
    organizer: str = Field(..., min_length=1)
    required_stake: AmountIn
    start_time: datetime
    end_time: datetime

    @field_validator('meeting_id')
    @classmethod
    def sanitize_meeting_id_field(cls, v: str) -> str:
        return sanitize_meeting_id(v)

    @field_validator('event_id')
    @classmethod
    def sanitize_event_id_field(cls, v: str) -> str:
        return sanitize_event_id(v)

    @field_validator('organizer')
    @classmethod
    def sanitize_organizer_field(cls, v: str) -> str:
        return sanitize_wallet_address(v)


class StakeRequest(StrictRequest):
    wallet_address: str = Field(..., min_length=1)
    amount: AmountIn

    @field_validator('wallet_address')
    @classmethod
    def sanitize_wallet_field(cls, v: str) -> str:
        return sanitize_wallet_address(v)


class AttendanceCodeRequest(StrictRequest):
    organizer_address: str = Field(..., min_length=1)

    @field_validator('organizer_address')
    @classmethod
    def sanitize_organizer_field(cls, v: str) -> str:
        return sanitize_wallet_address(v)


class CheckinRequest(StrictRequest):
    wallet_address: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)

    @field_validator('wallet_address')
    @classmethod
    def sanitize_wallet_field(cls, v: str) -> str:
        return sanitize_wallet_address(v)

    @field_validator('code')
    @classmethod
    def sanitize_code_field(cls, v: str) -> str:
        """Trim and upper-case; codes are compared case-insensitively."""
        return sanitize_attendance_code(v)


# Responses

class MeetingStakeCreated(BaseModel):
    meeting_id: str
    staking_deadline: datetime
    check_in_deadline: datetime


class AttendanceCodeResponse(BaseModel):
    code: str
    valid_until: datetime


class SettlementResponse(BaseModel):
    meeting_id: str
    refunded_total: AmountOut
    forfeited_total: AmountOut
    refunded_count: int
    forfeited_count: int


class SettlementTotals(BaseModel):
    refunded_total: AmountOut
    forfeited_total: AmountOut
    refunded_count: int
    forfeited_count: int


class MeetingSummary(BaseModel):
    meeting_id: str
    event_id: str
    organizer: str
    required_stake: AmountOut
    start_time: str
    end_time: str
    status: str
    is_settled: bool
    settled_at: Optional[str] = None
    has_attendance_code: bool
    staking_deadline: str
    check_in_deadline: str


class StakeStats(BaseModel):
    total_staked: AmountOut
    total_stakers: int
    total_attended: int
    total_absent: int


class UserStake(BaseModel):
    wallet_address: str
    amount: AmountOut
    staked_at: str
    has_checked_in: bool
    check_in_time: Optional[str] = None
    is_refunded: bool


class Participant(BaseModel):
    wallet_address: str  # masked
    has_checked_in: bool
    is_refunded: bool


class MeetingStakeStatus(BaseModel):
    meeting: MeetingSummary
    stats: StakeStats
    user_stake: Optional[UserStake] = None
    participants: List[Participant]
    settlement: Optional[SettlementTotals] = None
