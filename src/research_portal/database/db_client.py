from contextlib import contextmanager
from typing import Callable, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .schema import create_all

SessionFactory = Callable[[], Session]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _unicode_lower(value):
    if isinstance(value, str):
        return value.lower()
    return value


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's builtin lower() folds ASCII only; search needles are folded with str.lower.
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def get_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the research database and make sure tables exist.

    In-memory SQLite URLs share one connection so every session sees the
    same database.
    """
    kwargs = {"echo": echo, "future": True}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        event.listen(engine, "connect", _register_sqlite_functions)
    create_all(engine)
    return engine


def get_session_factory(database_url: str, echo: bool = False) -> sessionmaker:
    engine = get_engine(database_url, echo=echo)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def session_context(session_factory: SessionFactory) -> Generator[Session, None, None]:
    """
    Context manager for SQLAlchemy sessions.

    Rolls back on any exception and always closes the session. Commits stay
    with the caller.

    Usage:
        with session_context(factory) as session:
            # use session
            session.commit()
    """
    session = session_factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
