"""
core/db.py -- SQLAlchemy engine construction shared by the stores.

Both auth/store.py and blog/store.py own their own Table definitions and
row mappers; only the engine wiring lives here so the SQLite connection rules
stay identical across stores.

Swapping SQLite for PostgreSQL is a DATABASE_URL change, not a rewrite.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import SingletonThreadPool


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def is_memory_url(db_url: str) -> bool:
    """True for SQLite URLs that name an in-memory database, plain or shared-cache."""
    return db_url.startswith("sqlite") and (":memory:" in db_url or "mode=memory" in db_url)


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url with the SQLite-specific connect rules applied."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # FastAPI runs sync handlers on a thread pool, so a pooled SQLite
        # connection may be used from a thread other than the one that opened it.
        connect_args["check_same_thread"] = False
    kwargs: dict = {}
    if is_memory_url(db_url):
        # One connection per thread; an in-memory database lives only as long
        # as a connection to it stays open.
        kwargs["poolclass"] = SingletonThreadPool
    engine = create_engine(db_url, connect_args=connect_args, **kwargs)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_iso(value: str) -> datetime:
    """Parse a stored ISO 8601 timestamp, treating naive values as UTC."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
