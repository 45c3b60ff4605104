"""Database layer: engine and sessions, declarative base, log immutability."""

from stock_kernel.db.base import Base, TimestampedBase, UUIDString
from stock_kernel.db.engine import (
    PoolSettings,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "PoolSettings",
    "TimestampedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
