"""Database initialization and utilities."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///calendar.db"


def create_db_engine(db_url: str = DEFAULT_DB_URL, echo: bool = False) -> Engine:
    """
    Create SQLAlchemy engine.

    In-memory SQLite shares one connection across threads so that every
    session sees the same database.
    """
    if db_url.startswith("sqlite") and ":memory:" in db_url:
        return create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(db_url, echo=echo, pool_pre_ping=True)


class DatabaseManager:
    """Manages database connection and session factory."""

    def __init__(self, db_url: str = DEFAULT_DB_URL, echo: bool = False):
        """
        Initialize database manager.

        Args:
            db_url: SQLAlchemy database URL (default: sqlite:///calendar.db)
            echo: Log emitted SQL
        """
        self.db_url = db_url
        self.engine = create_db_engine(db_url, echo=echo)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all tables (use with caution!)."""
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def init_database(db_url: str = DEFAULT_DB_URL) -> DatabaseManager:
    """Initialize database and create all tables."""
    manager = DatabaseManager(db_url)
    manager.create_tables()
    logger.info("Database initialized: %s", db_url)
    return manager


def reset_database(db_url: str = DEFAULT_DB_URL) -> DatabaseManager:
    """Drop all tables and recreate (WARNING: deletes all data!)."""
    manager = DatabaseManager(db_url)
    manager.drop_tables()
    manager.create_tables()
    logger.warning("Database reset: %s", db_url)
    return manager
