"""Database infrastructure: declarative base and engine/session management."""

from timesheet_kernel.db.base import Base, TrackedBase, UUIDString
from timesheet_kernel.db.immutability import append_only, is_append_only
from timesheet_kernel.db.engine import (
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
    "TrackedBase",
    "UUIDString",
    "append_only",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "is_append_only",
    "reset_engine",
    "session_scope",
]
