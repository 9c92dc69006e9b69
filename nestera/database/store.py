"""
Ledger store — SQLAlchemy-backed key/value table with all-or-nothing commits.

Uses NESTERA_DB_URL / DATABASE_URL when no URL is passed; otherwise SQLite
(NESTERA_DB_PATH or nestera.db). Each ledger call runs inside one
transaction(): reads go through a staged write buffer and every staged write
is committed in a single session at the end, or discarded if the call raises.
"""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Column, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from nestera.config.env import get_database_url, mask_database_url
from nestera.database.keys import LedgerKey
from nestera.nestera_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

_MISSING = object()


class LedgerEntry(Base):
    """One stored record: encoded key -> JSON value."""

    __tablename__ = "ledger_entries"

    key = Column(String(256), primary_key=True)
    value = Column(Text, nullable=False)


class StoreTransaction:
    """
    get / set / has over one session with staged writes.

    Nothing touches the database until commit(); the owning LedgerStore calls
    it once the ledger operation returned without raising.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._staged: dict[str, Any] = {}

    def get(self, key: LedgerKey, default: Any = None) -> Any:
        encoded = key.encode()
        staged = self._staged.get(encoded, _MISSING)
        if staged is not _MISSING:
            return staged
        row = self._session.get(LedgerEntry, encoded)
        if row is None:
            return default
        return json.loads(row.value)

    def has(self, key: LedgerKey) -> bool:
        encoded = key.encode()
        if encoded in self._staged:
            return True
        return self._session.get(LedgerEntry, encoded) is not None

    def set(self, key: LedgerKey, value: Any) -> None:
        self._staged[key.encode()] = value

    @property
    def pending_writes(self) -> int:
        return len(self._staged)

    def commit(self) -> None:
        for encoded, value in self._staged.items():
            self._session.merge(LedgerEntry(key=encoded, value=json.dumps(value)))
        self._session.flush()
        self._staged.clear()


class LedgerStore:
    """
    Persistent key/value store for the ledger.

    Calls are serialized with a process-wide lock so two ledger operations
    never interleave their reads and writes.
    """

    def __init__(self, url: str | None = None) -> None:
        self.url = url or get_database_url()
        connect_args: dict[str, Any] = {}
        engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if ":memory:" in self.url or self.url.rstrip("/") == "sqlite:":
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(self.url, connect_args=connect_args, **engine_kwargs)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        self._lock = threading.RLock()
        logger.info("ledger_store_engine", url=mask_database_url(self.url))

    def init_db(self) -> None:
        """Create the ledger table if it does not exist. Safe to call on every startup."""
        try:
            Base.metadata.create_all(bind=self._engine)
            logger.info("ledger_store_init_db", url=mask_database_url(self.url))
        except Exception as e:
            logger.exception("ledger_store_init_db_failed", error=str(e))
            raise

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Run one ledger call: staged writes commit together, or not at all."""
        with self._lock:
            with self._session_scope() as session:
                txn = StoreTransaction(session)
                yield txn
                txn.commit()

    def count_entries(self) -> int:
        with self._lock, self._session_scope() as session:
            return session.query(LedgerEntry).count()

    def dispose(self) -> None:
        self._engine.dispose()

