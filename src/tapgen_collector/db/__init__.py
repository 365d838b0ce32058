"""Database package: async engine/session management and ORM models."""

from tapgen_collector.db.connection import (
    get_async_engine,
    get_async_session_factory,
    init_db,
    check_db_health,
    close_async_engine,
)
from tapgen_collector.db.orm_models import Base, SampleReading

__all__ = [
    "get_async_engine",
    "get_async_session_factory",
    "init_db",
    "check_db_health",
    "close_async_engine",
    "Base",
    "SampleReading",
]
