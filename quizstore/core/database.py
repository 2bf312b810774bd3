"""
Store lifecycle: one engine and one long-lived session per process.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in url


class Database:
    """
    Shared store handle injected into every DAO.

    DAOs call ``commit()`` after each write. Inside a ``transaction()`` block
    those commits only flush, so a multi-statement sequence either lands as a
    whole or not at all.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {"future": True, "echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(url):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.engine = create_engine(url, **kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False, future=True)
        self.session: Session = self._session_factory()
        self._depth = 0
        self._closed = False

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def create_tables(self) -> None:
        from quizstore.models.orm import Base
        Base.metadata.create_all(self.engine)

    def commit(self) -> None:
        if self._depth:
            self.session.flush()
        else:
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Group several DAO writes into one atomic unit."""
        outer = self._depth == 0
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if outer:
                self.session.rollback()
            raise
        self._depth -= 1
        if outer:
            self.session.commit()

    def close(self) -> None:
        if self._closed:
            return
        self.session.close()
        self.engine.dispose()
        self._closed = True
        logger.info("Database connection closed")

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def init_db(settings: Optional[Settings] = None, url: Optional[str] = None) -> Database:
    """Open the store and make sure the schema exists."""
    settings = settings or get_settings()
    db = Database(url or settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    db.create_tables()
    logger.info("Database initialized at %s", db.engine.url.render_as_string(hide_password=True))
    return db


def close_db(db: Database) -> None:
    db.close()
