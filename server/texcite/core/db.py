from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from functools import lru_cache

from fastapi import Request
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from server.texcite.core.config import Settings


class Base(DeclarativeBase):
    pass


def _sqlite_database(db_url: str) -> str | None:
    """Return the on-disk path of a sqlite URL, or None for memory/non-sqlite URLs."""
    try:
        url = make_url(db_url)
    except Exception:
        return None
    if url.drivername != "sqlite":
        return None
    database = url.database
    if not database or database == ":memory:":
        return None
    return database


@lru_cache(maxsize=8)
def _engine_for(db_url: str) -> Engine:
    if not db_url.startswith("sqlite:"):
        return create_engine(db_url, pool_pre_ping=True)

    database = _sqlite_database(db_url)
    if database:
        parent = os.path.dirname(database)
        if parent:
            os.makedirs(parent, exist_ok=True)
    engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_pre_ping=True,
    )

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        try:
            # Sources cascade from projects and tags; sqlite ignores FKs by default.
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=30000")
            if database:
                cursor.execute("PRAGMA journal_mode=WAL")
        finally:
            cursor.close()

    return engine


@lru_cache(maxsize=8)
def _sessionmaker_for(db_url: str) -> sessionmaker[Session]:
    return sessionmaker(bind=_engine_for(db_url), autoflush=False, expire_on_commit=False)


def get_engine(settings: Settings) -> Engine:
    return _engine_for(settings.db_url)


def get_sessionmaker(settings: Settings) -> sessionmaker[Session]:
    return _sessionmaker_for(settings.db_url)


def init_db(settings: Settings) -> None:
    from server.texcite.core import models  # noqa: F401

    Base.metadata.create_all(get_engine(settings))


def _transactional(settings: Settings) -> Iterator[Session]:
    db = get_sessionmaker(settings)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope(settings: Settings) -> Generator[Session, None, None]:
    yield from _transactional(settings)


def db_session(request: Request) -> Generator[Session, None, None]:
    yield from _transactional(request.app.state.settings)
