"""
db/session.py – Engine factory + Session helper.

One engine per database URL, cached. db_session() is one unit of work:
commit on success, rollback on error, always close.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

logger = logging.getLogger(__name__)


# ── Engine cache (1 engine / URL) ─────────────────────────────────────────────

_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}


def _get_engine(database_url: str) -> Engine:
    if database_url not in _engines:
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite":
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False, "timeout": 15},
                echo=False,
            )

            @event.listens_for(engine, "connect")
            def set_pragmas(conn, _):
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
                conn.execute("PRAGMA foreign_keys=ON")
        else:
            engine = create_engine(database_url, pool_size=5, max_overflow=10, pool_pre_ping=True, echo=False)

        _engines[database_url] = engine
        _session_factories[database_url] = sessionmaker(bind=engine, expire_on_commit=False)
    return _engines[database_url]


def get_session_factory(database_url: str) -> sessionmaker:
    _get_engine(database_url)
    return _session_factories[database_url]


def init_db(database_url: str) -> None:
    """Create missing tables and indexes."""
    Base.metadata.create_all(_get_engine(database_url))
    logger.info("Database ready: %s", make_url(database_url).render_as_string(hide_password=True))


def dispose_engines() -> None:
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
    _session_factories.clear()


@contextmanager
def db_session(database_url: str) -> Generator[Session, None, None]:
    """Context manager yielding a Session; commits, rolls back, closes."""
    factory = get_session_factory(database_url)
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
