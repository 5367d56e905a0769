"""SQLModel engine singleton, request session dependency and per-run session scope."""
from contextlib import contextmanager
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from crmsync.config import get_settings

_engine = None


def get_engine():
    """Return the module-level engine, creating it on first call."""
    global _engine
    if _engine is None:
        settings = get_settings()
        connect_args = {}
        if settings.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False  # shared by API threads and the scheduler
        _engine = create_engine(settings.database_url, connect_args=connect_args)
        # Import all models so metadata is populated before create_all
        from crmsync.models.contact import Contact  # noqa
        from crmsync.models.sync import SyncRun  # noqa
        SQLModel.metadata.create_all(_engine)
    return _engine


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session."""
    with Session(get_engine()) as session:
        yield session


@contextmanager
def session_scope(engine) -> Generator[Session, None, None]:
    """
    Yield a fresh session for one unit of work and always close it.

    Each background sync run gets its own session so nothing (identity map,
    pending state, a poisoned transaction) leaks from one run into the next.
    Uncommitted work is rolled back on exit.
    """
    session = Session(engine)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
