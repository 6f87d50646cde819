"""
Module: timesheet_kernel.db.engine
Responsibility: Process-wide engine and session factory, plus the
    transaction scope callers wrap service calls in.
Architecture position: Kernel > DB.  Imports db/base.py and, lazily in
    create_tables/drop_tables, the models package.

Backends:
    - PostgreSQL in production: pooled connections with pre-ping and
      READ COMMITTED isolation, sized by ``PoolSettings``.
    - SQLite for tests and local runs: one shared connection (StaticPool)
      so ``sqlite://`` keeps its data between sessions, and explicit BEGIN
      so transition SAVEPOINTs behave as on PostgreSQL.

Failure modes:
    - RuntimeError from any accessor called before init_engine_from_url().
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from timesheet_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")


@dataclass(frozen=True)
class PoolSettings:
    """Connection pool sizing; ignored for SQLite."""

    size: int = 10
    max_overflow: int = 5
    timeout: int = 30
    recycle: int = 1800


_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _is_sqlite(database_url: str) -> bool:
    return database_url.split(":", 1)[0].split("+", 1)[0] == "sqlite"


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool: PoolSettings | None = None,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Calling it again disposes nothing; use ``reset_engine()`` first when
    switching databases.
    """
    global _engine, _SessionFactory

    if _is_sqlite(database_url):
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        _route_begin_through_sqlalchemy(engine)
    else:
        pool = pool or PoolSettings()
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool.size,
            max_overflow=pool.max_overflow,
            pool_timeout=pool.timeout,
            pool_recycle=pool.recycle,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
        )

    _engine = engine
    _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": engine.dialect.name, "echo": echo},
    )
    return engine


def _route_begin_through_sqlalchemy(engine: Engine) -> None:
    # pysqlite's implicit transactions swallow SAVEPOINT; disable them.
    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def _require_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError("Database not initialized; call init_engine_from_url() first")
    return _SessionFactory


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database not initialized; call init_engine_from_url() first")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    return _require_factory()


def get_session() -> Session:
    """A new Session bound to the current engine.  The caller closes it."""
    return _require_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit on normal exit, roll back and re-raise on error, always close.

    Usage::

        with session_scope() as session:
            TimesheetService(session).submit(user_id, week_id, Owner(user_id))
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from timesheet_kernel.db.base import Base
    import timesheet_kernel.models  # noqa: F401

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from timesheet_kernel.db.base import Base
    import timesheet_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
