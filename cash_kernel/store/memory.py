"""In-process record store.  Used by tests and throwaway sessions."""

import copy
from typing import Any

from cash_kernel.store.base import Collection, LedgerStore, record_key


class InMemoryLedgerStore(LedgerStore):
    """
    Ordered lists per collection, newest first.

    Records are deep-copied on the way in and on the way out, so the store
    behaves like a real persistence boundary.
    """

    def __init__(self):
        self._collections: dict[Collection, list[dict[str, Any]]] = {
            c: [] for c in Collection
        }

    def get(self, collection: Collection) -> list[dict[str, Any]]:
        return copy.deepcopy(self._collections[collection])

    def put(self, collection: Collection, record: dict[str, Any]) -> None:
        key = record_key(collection, record)
        rows = self._collections[collection]
        for index, existing in enumerate(rows):
            if record_key(collection, existing) == key:
                rows[index] = copy.deepcopy(record)
                return
        rows.insert(0, copy.deepcopy(record))

    def delete(self, collection: Collection, key: str) -> None:
        rows = self._collections[collection]
        self._collections[collection] = [
            r for r in rows if record_key(collection, r) != key
        ]
