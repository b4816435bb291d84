"""
SQLite storage for the mapping table and the redemption ledger

GiftStore owns the engine and session factories. One instance is created by
the application factory and handed to request handlers; nothing here is a
module-level global.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import Column, DateTime, String, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from gift_redemption.errors import StorageError


logger = logging.getLogger(__name__)

Base = declarative_base()

# Execution option read by the "begin" listener to pick the BEGIN flavour
BEGIN_MODE_OPTION = "sqlite_begin_mode"


class MappingRecord(Base):
    """staff_pass_id -> team_name, loaded out of band"""
    __tablename__ = "mapping_entries"

    staff_pass_id = Column(String, primary_key=True)
    team_name = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)


class RedemptionRecord(Base):
    """One row per team that has claimed its gift"""
    __tablename__ = "redemption_entries"

    # Primary key doubles as the uniqueness constraint on team_name
    team_name = Column(String, primary_key=True)
    redeemed_at = Column(DateTime, nullable=False)
    redeemed_by = Column(String, nullable=False)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sqlite_url(db_path: str) -> str:
    return f"sqlite:///{Path(db_path)}"


def _install_sqlite_hooks(engine: Engine, busy_timeout: float) -> None:
    """
    Take over transaction control from pysqlite.

    pysqlite defers BEGIN until the first write, which would let two
    ledger transactions both read "no redemption" before either writes.
    The driver's own BEGIN is disabled and the begin event emits
    BEGIN DEFERRED or BEGIN IMMEDIATE depending on the connection's
    execution options.
    """
    busy_ms = int(busy_timeout * 1000)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute(f"PRAGMA busy_timeout={busy_ms};")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


class GiftStore:
    """
    Storage access object shared by every request handler

    Args:
        url: SQLAlchemy database URL
        busy_timeout: Seconds a writer waits on a locked SQLite database
    """

    def __init__(self, url: str, busy_timeout: float = 30.0):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        connect_args = {}
        if self.is_sqlite:
            connect_args = {"check_same_thread": False, "timeout": busy_timeout}

        self.engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        if self.is_sqlite:
            _install_sqlite_hooks(self.engine, busy_timeout)

        # Same pool, but every transaction starts with the write lock held
        self._write_engine = self.engine.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})

        self._read_sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self._write_sessions = sessionmaker(bind=self._write_engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_path(cls, db_path: str, busy_timeout: float = 30.0) -> "GiftStore":
        path = Path(db_path)
        if not path.exists():
            logger.info(f"Creating a new database {path}")
        return cls(sqlite_url(db_path), busy_timeout=busy_timeout)

    def init_db(self) -> None:
        """Create both tables if they do not exist yet"""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"error initializing database tables: {exc}") from exc

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def read_session(self) -> Iterator[Session]:
        """Session for lookups; never takes the write lock"""
        with self._read_sessions() as session:
            yield session

    @contextmanager
    def write_transaction(self) -> Iterator[Session]:
        """
        Atomic unit of work for redemptions and bulk imports

        Commits when the block exits normally, rolls back on any exception.
        On SQLite the transaction holds the write lock from its first
        statement, so a read inside the block cannot go stale before the
        block's own write.
        """
        with self._write_sessions() as session:
            with session.begin():
                yield session

    def count_mappings(self) -> int:
        with self.read_session() as session:
            return session.scalar(select(func.count()).select_from(MappingRecord))

    def count_redemptions(self) -> int:
        with self.read_session() as session:
            return session.scalar(select(func.count()).select_from(RedemptionRecord))

    def get_redemption(self, team_name: str) -> Optional[RedemptionRecord]:
        with self.read_session() as session:
            return session.get(RedemptionRecord, team_name)
