"""
Module: cash_kernel.store.base
Responsibility: The record-store contract the kernel consumes.  Storage is
    a set of keyed collections of plain dicts; there is no business logic
    behind it.
Architecture position: Kernel > Store.  Services depend on ``LedgerStore``
    only, never on a concrete adapter.

Contract:
    - ``get(collection)`` returns every record, newest first (a record
      keeps its place when updated; new keys go to the head).
    - ``put(collection, record)`` upserts by the collection's key field.
    - ``delete(collection, key)`` removes the record; unknown keys are
      ignored.
    - Returned dicts are copies.  Mutating them never changes the store.
    - No atomicity across several puts is promised by the contract.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class Collection(str, Enum):
    """Stored collections and the record field each is keyed by."""

    ENTRIES = "entries"
    WITHDRAWALS = "withdrawals"
    BALANCES = "balances"
    ARCHIVES = "archives"
    MOVEMENTS = "movements"

    @property
    def key_field(self) -> str:
        return "month" if self is Collection.ARCHIVES else "id"


def record_key(collection: Collection, record: dict[str, Any]) -> str:
    """Extract the key of ``record`` for ``collection``."""
    try:
        return str(record[collection.key_field])
    except KeyError:
        raise ValueError(
            f"{collection.value} record is missing key field '{collection.key_field}'"
        ) from None


class LedgerStore(ABC):
    """Abstract keyed record store."""

    @abstractmethod
    def get(self, collection: Collection) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def put(self, collection: Collection, record: dict[str, Any]) -> None:
        ...

    @abstractmethod
    def delete(self, collection: Collection, key: str) -> None:
        ...

    def find(self, collection: Collection, key: str) -> dict[str, Any] | None:
        """Return the record stored under ``key`` or None."""
        for record in self.get(collection):
            if record_key(collection, record) == key:
                return record
        return None
