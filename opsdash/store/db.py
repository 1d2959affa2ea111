"""Store engine and session management."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from opsdash.errors import StoreError

logger = logging.getLogger(__name__)

# One engine per URL so tests can point at throwaway SQLite files.
_ENGINES: Dict[str, Engine] = {}
_SESSIONMAKERS: Dict[str, sessionmaker] = {}


def get_engine(database_url: str) -> Engine:
    engine = _ENGINES.get(database_url)
    if engine is not None:
        return engine

    # The API serves requests from a worker thread pool.
    connect_args = {}
    if database_url.startswith("sqlite:"):
        connect_args = {"check_same_thread": False}

    engine = create_engine(
        database_url,
        future=True,
        echo=False,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    _ENGINES[database_url] = engine
    _SESSIONMAKERS[database_url] = sessionmaker(
        bind=engine, autoflush=False, expire_on_commit=False, future=True
    )
    return engine


def get_sessionmaker(database_url: str) -> sessionmaker:
    if database_url not in _SESSIONMAKERS:
        get_engine(database_url)
    return _SESSIONMAKERS[database_url]


@contextmanager
def session_scope(database_url: str) -> Iterator[Session]:
    """Yield a session; driver/ORM failures surface as StoreError."""
    sm = get_sessionmaker(database_url)
    with sm() as s:
        try:
            yield s
        except SQLAlchemyError as exc:
            s.rollback()
            logger.exception("store operation failed")
            raise StoreError(str(exc)) from exc


def dispose_engines() -> None:
    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()
    _SESSIONMAKERS.clear()
