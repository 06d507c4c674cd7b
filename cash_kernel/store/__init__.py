"""Record store contract and adapters."""

from cash_kernel.store.base import Collection, LedgerStore, record_key
from cash_kernel.store.memory import InMemoryLedgerStore
from cash_kernel.store.sqlalchemy_store import SqlAlchemyLedgerStore

__all__ = [
    "Collection",
    "LedgerStore",
    "record_key",
    "InMemoryLedgerStore",
    "SqlAlchemyLedgerStore",
]
