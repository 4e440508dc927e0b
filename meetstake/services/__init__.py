from .attendance import AttendanceCode, code_valid_until, codes_match, generate_code
from .settlement import Distribution, compute_distribution, settle_meeting, settlement_summary
from .staking import (
    create_staked_meeting,
    generate_attendance_code,
    get_all_meetings,
    get_meeting_stake,
    get_meetings_for_wallet,
    get_stake_info,
    has_staked,
    regenerate_attendance_code,
    stake_for_meeting,
    submit_attendance_code,
)
from .status import StakeStatus, derive_status, get_stake_status, summarize_meeting

__all__ = [
    # attendance
    "AttendanceCode",
    "code_valid_until",
    "codes_match",
    "generate_code",
    # settlement
    "Distribution",
    "compute_distribution",
    "settle_meeting",
    "settlement_summary",
    # staking
    "create_staked_meeting",
    "generate_attendance_code",
    "get_all_meetings",
    "get_meeting_stake",
    "get_meetings_for_wallet",
    "get_stake_info",
    "has_staked",
    "regenerate_attendance_code",
    "stake_for_meeting",
    "submit_attendance_code",
    # status
    "StakeStatus",
    "derive_status",
    "get_stake_status",
    "summarize_meeting",
]
