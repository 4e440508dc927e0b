"""Ledger store: engine, session factory and their lifecycle."""
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from meetstake.core.config import settings
from meetstake.db.base import Base


class LedgerStore:
    """
    Durable keyed storage for meeting stake records.

    The store owns one SQLAlchemy engine and hands out sessions. It has an
    explicit lifecycle so the application (and tests) decide when
    connections exist:

        store = LedgerStore("sqlite:///ledger.db")
        store.open()
        with store.session() as db:
            ...
        store.close()

    It is also a context manager that opens on enter and closes on exit.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self._engine_kwargs = engine_kwargs
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Ledger store is not open")
        return self._engine

    def _build_engine_kwargs(self) -> dict:
        kwargs = {"pool_pre_ping": True, "echo": False}
        if self.url.startswith("sqlite"):
            # Sessions are used from worker threads (FastAPI sync deps, tests)
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = settings.DB_POOL_SIZE
            kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
        kwargs.update(self._engine_kwargs)
        return kwargs

    def open(self) -> "LedgerStore":
        """Create the engine and session factory. Opening twice is a no-op."""
        if self._engine is None:
            self._engine = create_engine(self.url, **self._build_engine_kwargs())
            self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        return self

    def close(self) -> None:
        """Dispose of all pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    def create_schema(self) -> None:
        """Create all tables (development and tests; production uses Alembic)."""
        Base.metadata.create_all(bind=self.engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Yield a session that is always closed afterwards."""
        if self._sessionmaker is None:
            raise RuntimeError("Ledger store is not open")
        db = self._sessionmaker()
        try:
            yield db
        finally:
            db.close()

    def __enter__(self) -> "LedgerStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# Application-wide store; opened and closed by the FastAPI lifespan
store = LedgerStore(settings.get_database_url())


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI to get database session."""
    with store.session() as db:
        yield db


@contextmanager
def get_db_context():
    """Context manager for getting database session outside of FastAPI."""
    with store.session() as db:
        yield db
