"""
Central SQLAlchemy models and session utilities.

These definitions back the direct (preferred) storage path.
"""

import logging
import os
from typing import Optional

from sqlalchemy import (
    Column,
    Index,
    String,
    Text,
    TIMESTAMP,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql import func

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


class Note(Base):
    """
    Notes table with user isolation and soft deletion.

    Schema supports both SQLite (dev) and PostgreSQL (prod).
    """
    __tablename__ = "notes"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)

    # Timestamps; updated_at/deleted_at are written by the application, not the engine
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_notes_user_created", "user_id", "created_at"),
        Index("idx_notes_user_title", "user_id", "title"),
        Index("idx_notes_user_deleted", "user_id", "deleted_at"),
    )


def get_database_url() -> str:
    """
    Get database URL from environment, defaulting to SQLite.

    Returns:
        Database connection string
    """
    database_url = os.getenv("DATABASE_URL")

    if database_url:
        return database_url

    flask_env = os.getenv("FLASK_ENV", "development")
    if flask_env == "production":
        # In production the direct path must point at the real database.
        raise ValueError("DATABASE_URL environment variable is not set in production environment!")

    from pathlib import Path
    db_path = Path(__file__).parent.parent / ".notes.db"
    logger.warning("Using SQLite database at %s", db_path)
    return f"sqlite:///{db_path}"


def get_engine():
    """Get (and lazily create) the shared SQLAlchemy engine."""
    global _engine
    if _engine is None:
        _engine = create_engine_for_url()
    return _engine


def get_session_factory() -> sessionmaker:
    """Return the configured session factory."""
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = make_session_factory(get_engine())
    return _SessionFactory


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )


def create_engine_for_url(database_url: Optional[str] = None) -> Engine:
    """Build a SQLAlchemy engine for the given URL (or default environment)."""
    url = database_url or get_database_url()
    engine = create_engine(
        url,
        future=True,
        echo=False,
        pool_pre_ping=True,
    )

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _set_sqlite_pragmas)

    return engine


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    """Apply SQLite pragmas for better consistency (WAL, foreign keys)."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()
