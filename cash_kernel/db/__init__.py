"""Database layer - engine, base classes, money helpers."""

from cash_kernel.db.base import Base, TrackedBase, UUIDString
from cash_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from cash_kernel.db.types import coerce_money, money_from_str

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "coerce_money",
    "money_from_str",
]
