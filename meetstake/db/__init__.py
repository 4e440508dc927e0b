"""Database package."""
from meetstake.db.session import LedgerStore, store, get_db, get_db_context
from meetstake.db.base import Base

__all__ = ["LedgerStore", "store", "get_db", "get_db_context", "Base"]
