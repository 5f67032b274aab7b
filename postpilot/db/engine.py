"""SQLModel engine and session management.

This module provides:
- Database engine creation (pooled for PostgreSQL, thread-shared for SQLite)
- Session factory for dependency injection
- Database initialization utilities
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from postpilot.config import DATABASE_URL


def build_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine for the given database URL.

    SQLite needs check_same_thread disabled because FastAPI runs sync
    dependencies in a threadpool. Other backends get connection pooling.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
    # pool_pre_ping ensures connections are valid before use
    return create_engine(
        url,
        echo=False,  # Set to True for SQL debugging
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


engine = build_engine()


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a database session.

    Usage:
        with get_session() as session:
            repo = PostRepository(session)
            due = repo.list_due(utcnow())

    Yields:
        SQLModel Session instance
    """
    with Session(engine) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise


def get_session_dependency() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions."""
    with Session(engine) as session:
        yield session


def init_db(target: Engine = None) -> None:
    """Create all tables defined in SQLModel models."""
    # Import all models to ensure they're registered with SQLModel
    from postpilot.db.models import (  # noqa: F401
        User,
        Post,
        PlatformConnection,
    )

    SQLModel.metadata.create_all(target or engine)


def drop_all_tables(target: Engine = None) -> None:
    """Drop all tables. USE WITH CAUTION - data loss will occur."""
    SQLModel.metadata.drop_all(target or engine)
