"""Database package: the Database handle (engine, session factory, per-thread locks) and init_db()."""

import threading
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.config import DATABASE_URL
from src.db.base import Base

# Import all models so Base.metadata has all tables
from src.db.models import (  # noqa: F401
    GroupRecord,
    MessageRecipient,
    MessageRecord,
    ThreadRecord,
)
from src.mail.errors import InternalError
from src.utils.logger import get_logger

logger = get_logger("agent_mail.db")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or url.startswith("sqlite:///:memory:?")


def _get_engine(url: str) -> Engine:
    """Create engine with check_same_thread=False for use from FastAPI's threadpool."""
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False)
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if _is_memory_sqlite(url):
        # One shared connection, otherwise every session sees a fresh empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=False, **kwargs)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class Database:
    """Storage handle owned by the process entry point and passed to the mail service."""

    def __init__(self, url: str = DATABASE_URL):
        self.url = url
        self.engine = _get_engine(url)
        self._session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False)
        self._locks_guard = threading.Lock()
        self._thread_locks: dict[str, threading.Lock] = {}

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Yield a session; commit on success, roll back and re-raise on error.

        SQLAlchemy errors surface as InternalError so callers see one storage failure type.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("db.session.error", error=str(e))
            raise InternalError("Storage failure") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def thread_lock(self, thread_id: str) -> threading.Lock:
        """Lock serializing message-id allocation for one thread."""
        with self._locks_guard:
            lock = self._thread_locks.get(thread_id)
            if lock is None:
                lock = threading.Lock()
                self._thread_locks[thread_id] = lock
            return lock

    def forget_thread_locks(self) -> None:
        with self._locks_guard:
            self._thread_locks.clear()

    def dispose(self) -> None:
        self.engine.dispose()


def init_db(url: Optional[str] = None) -> Database:
    """Create a Database handle and its tables (no-op for tables that already exist)."""
    db = Database(url or DATABASE_URL)
    db.create_all()
    logger.info("db.initialized", url=db.url)
    return db
