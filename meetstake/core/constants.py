"""Application constants.

This module contains the policy numbers and magic strings used by the staking
engine. Settings in app config default to these values, so a deployment can
override them with environment variables (e.g. CHECK_IN_GRACE_MINUTES=30).
"""

# Staking Window
# Participants may stake until one hour before the meeting starts
STAKING_DEADLINE_MINUTES = 60

# Check-in Window
# Attendance codes stay valid for 15 minutes after the meeting ends.
# Settlement is allowed only once this grace period has passed.
CHECK_IN_GRACE_MINUTES = 15

# Attendance Code Configuration
# 6 characters from A-Z0-9 gives 36^6 (~2.2 billion) combinations
ATTENDANCE_CODE_LENGTH = 6
ATTENDANCE_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
MAX_ATTENDANCE_CODE_LENGTH = 16

# Amount precision (Numeric(38, 18) columns)
AMOUNT_PRECISION = 38
AMOUNT_SCALE = 18

# Identifier limits
MAX_MEETING_ID_LENGTH = 128
MAX_EVENT_ID_LENGTH = 255
MAX_WALLET_ADDRESS_LENGTH = 128

# JWT Token Configuration
# Token expiration time in minutes (8 hours)
ACCESS_TOKEN_EXPIRE_MINUTES = 480
