"""Database layer - engine, base classes, types, and immutability."""

from planning_kernel.db.base import UUID, Base, UTCDateTime, UUIDString
from planning_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from planning_kernel.db.types import (
    STORAGE_DECIMAL_PLACES,
    ceil_count,
    quantize_storage,
    round_count,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "STORAGE_DECIMAL_PLACES",
    "quantize_storage",
    "round_count",
    "ceil_count",
]
