"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db().
"""

from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from invoice_ledger.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    """Pool limits only apply to server databases, not SQLite files."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
    }


def configure_sqlite(target: Engine) -> Engine:
    """
    Make SQLite behave transactionally enough for savepoints.

    pysqlite defers BEGIN until the first DML statement, so a
    SAVEPOINT issued before it would open (and its RELEASE
    would commit) the outer transaction. Emitting BEGIN
    ourselves keeps begin_nested() inside the outer unit.
    Foreign keys are off by default in SQLite; turn them on.
    """

    @event.listens_for(target, "connect")
    def _on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(target, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return target


# --- Engine ---
# One bounded connection pool shared by every request.
# pool_pre_ping=True tests connections before using them,
# which handles cases where the database restarted or a
# connection went stale.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    **_engine_options(settings.DATABASE_URL),
)
if settings.DATABASE_URL.startswith("sqlite"):
    configure_sqlite(engine)

# --- Session Factory ---
# autoflush=False means SQLAlchemy won't send SQL to the
# database until we explicitly flush or commit. Commit and
# rollback are owned by AccountingTransaction for writes.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


# --- Base Model Class ---
class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed and its connection returned to the pool, even
    if the request fails halfway through.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope():
    """Same guarantee as get_db() for scripts and background jobs."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
