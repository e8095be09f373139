"""
SQLAlchemy engine singleton with production-ready connection pooling.

PostgreSQL serializes reservation writers with row locks (``FOR UPDATE`` on
the resource). SQLite has no row locks, so for SQLite URLs every transaction
is opened with ``BEGIN IMMEDIATE``: the database write lock is taken before
the conflict re-read, and concurrent writers queue on the busy timeout.
"""

from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from coworking_scheduler.config import DATABASE_URL

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        # let SQLAlchemy emit BEGIN itself instead of pysqlite's deferred BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for ``url`` with the locking setup the reservation store needs.

    Args:
        url: SQLAlchemy database URL.
        echo: Log SQL statements (development only).

    Returns:
        Engine: Configured engine.
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
            echo=echo,
        )
        _enable_sqlite_immediate_transactions(engine)
        return engine

    return create_engine(
        url,
        future=True,
        pool_size=10,  # Number of connections to maintain in the pool
        max_overflow=20,  # Additional connections when pool is exhausted
        pool_pre_ping=True,  # Verify connections before using (detect stale connections)
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=echo,
    )


engine: Engine = build_engine(DATABASE_URL)  # type: ignore[arg-type]


def check_engine_health(target: Engine = engine) -> bool:
    """
    Check that the database answers a trivial query.

    Used by the /ready endpoint before the service accepts traffic.

    Returns:
        bool: True if database is reachable and healthy, False otherwise
    """
    try:
        with target.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
