"""Database layer: engine, sessions and SQLModel tables."""

from postpilot.db.engine import (
    engine,
    build_engine,
    get_session,
    get_session_dependency,
    init_db,
    drop_all_tables,
)

__all__ = [
    "engine",
    "build_engine",
    "get_session",
    "get_session_dependency",
    "init_db",
    "drop_all_tables",
]
