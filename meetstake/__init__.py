"""MeetStake: stake-to-attend ledger and settlement engine for calendar meetings."""

__version__ = "1.0.0"
