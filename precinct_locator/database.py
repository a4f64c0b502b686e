"""Database handle and session management"""

from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from precinct_locator.exceptions import DatabaseStateError

logger = structlog.get_logger()

# Base class for models
Base = declarative_base()


class DatabaseState(str, Enum):
    """Lifecycle of a Database handle"""
    CREATED = "created"
    READY = "ready"
    CLOSED = "closed"


class Database:
    """
    Owned database resource, constructed once at startup and injected into
    the services that need it.

    Lifecycle: created -> ready (open) -> closed. A closed handle cannot be
    reopened; build a new one instead.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.state = DatabaseState.CREATED
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        self._require_ready()
        return self._engine

    def open(self) -> "Database":
        """Create the engine and schema. Opening a ready handle is a no-op."""
        if self.state == DatabaseState.READY:
            return self
        if self.state == DatabaseState.CLOSED:
            raise DatabaseStateError("Database handle is closed and cannot be reopened")

        engine_kwargs = {"echo": self.echo, "pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool

        self._engine = create_engine(self.url, **engine_kwargs)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

        # Register all models before creating tables
        import precinct_locator.models  # noqa: F401
        Base.metadata.create_all(bind=self._engine)

        self.state = DatabaseState.READY
        logger.info("Database ready", url=self._safe_url())
        return self

    def close(self) -> None:
        if self.state == DatabaseState.READY:
            self._engine.dispose()
            logger.info("Database closed", url=self._safe_url())
        self.state = DatabaseState.CLOSED
        self._engine = None
        self._session_factory = None

    def session(self) -> Session:
        """New session bound to this handle; caller owns closing it"""
        self._require_ready()
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error"""
        db = self.session()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_db(self) -> Iterator[Session]:
        """Dependency-style generator yielding a session"""
        db = self.session()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def _require_ready(self) -> None:
        if self.state != DatabaseState.READY:
            raise DatabaseStateError(f"Database is {self.state.value}, expected ready")

    def _safe_url(self) -> str:
        # Hide credentials in logs
        if "@" in self.url:
            scheme, _, rest = self.url.partition("://")
            return f"{scheme}://***@{rest.split('@', 1)[1]}"
        return self.url
