"""Database session management.

This module provides SQLAlchemy engine and session factory configured
from app.core.config settings.
"""

from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_settings


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create engine; SQLite gets foreign keys enabled and cross-thread access."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    eng = create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        echo=echo,
        connect_args=connect_args,
    )

    if eng.dialect.name == "sqlite":

        @event.listens_for(eng, "connect")
        def _enable_sqlite_fks(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return eng


# Create engine from settings
_settings = get_settings()
engine = build_engine(_settings.database_url, echo=_settings.database_echo)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def get_db() -> Iterator[Session]:
    """Get database session (dependency injection for FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
