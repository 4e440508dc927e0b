"""Shared API dependencies."""
from meetstake.db import get_db, get_db_context
from meetstake.core.security import verify_admin_token

__all__ = ["get_db", "get_db_context", "verify_admin_token"]
