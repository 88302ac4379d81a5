"""Database engine and session management."""
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from card_recommender.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    """Extra engine arguments for the configured backend.

    SQLite connections are shared with FastAPI's worker threads, and an
    in-memory database only exists on a single connection.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {}
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(
    settings.database_url,
    echo=False,  # Set to True for SQL logging
    pool_pre_ping=True,
    **_engine_options(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """Session scope: commit on success, roll back on error, always close.

    Usage:
        with get_db() as db:
            service.get_card(db, card_id)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create all tables. Production deployments should run migrations instead."""
    from card_recommender.database.models import Base

    Base.metadata.create_all(bind=engine)
