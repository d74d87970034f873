"""SQLAlchemy engine and session helpers."""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

# ``Base`` is the parent class for every model defined in paintshop/models.
Base = declarative_base()


def create_db_engine(url: str, **kwargs) -> Engine:
    """Build an engine, applying the SQLite transaction fixes when needed.

    pysqlite defers ``BEGIN`` until the first write and does not play well
    with SAVEPOINT, which the stock upsert relies on. For SQLite we take over
    transaction control and open every transaction with ``BEGIN IMMEDIATE`` so
    concurrent writers queue on the busy timeout rather than failing with a
    lock-upgrade deadlock halfway through a unit of work.
    """

    if not url.startswith("sqlite"):
        return create_engine(url, **kwargs)

    connect_args = dict(kwargs.pop("connect_args", {}) or {})
    connect_args.setdefault("check_same_thread", False)
    connect_args.setdefault("timeout", 30)
    engine = create_engine(url, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):  # pragma: no cover - driver hook
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


# One engine per process; it owns the connection pool.
engine = create_db_engine(settings.DB_URL)
# ``SessionLocal`` builds a fresh session for every request.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
