"""
Engine and session factory.

The database is chosen with the DATABASE_URL environment variable and
defaults to an in-memory SQLite database.
"""

import os
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlmodel import Session

DEFAULT_DATABASE_URL = "sqlite://"

# Singleton engine
_engine: Optional[Engine] = None


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Returns a singleton instance of the SQLAlchemy engine.
    """
    global _engine
    if _engine is None:
        _engine = create_engine(database_url or get_database_url())
    return _engine


def get_session() -> Generator[Session, None, None]:
    """
    Yields a session that commits when the caller finishes and rolls back on error.
    """
    engine = get_engine()
    with Session(engine) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def close_engine() -> None:
    """
    Disposes the singleton engine.
    """
    global _engine
    if _engine:
        _engine.dispose()
        _engine = None
