"""Pydantic schemas for request/response validation."""
from meetstake.schemas.auth import AdminLoginRequest
from meetstake.schemas.meeting_stake import (
    AttendanceCodeRequest,
    AttendanceCodeResponse,
    CheckinRequest,
    MeetingStakeCreate,
    MeetingStakeCreated,
    MeetingStakeStatus,
    MeetingSummary,
    SettlementResponse,
    StakeRequest,
)
from meetstake.schemas.common import SuccessResponse, ErrorResponse, ErrorDetail

__all__ = [
    "AdminLoginRequest",
    "AttendanceCodeRequest",
    "AttendanceCodeResponse",
    "CheckinRequest",
    "MeetingStakeCreate",
    "MeetingStakeCreated",
    "MeetingStakeStatus",
    "MeetingSummary",
    "SettlementResponse",
    "StakeRequest",
    "SuccessResponse",
    "ErrorResponse",
    "ErrorDetail",
]
