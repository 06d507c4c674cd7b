"""
Module: cash_kernel.store.sqlalchemy_store
Responsibility: ``LedgerStore`` backed by the ``ledger_records`` table.
Architecture position: Kernel > Store.  Imports models/ and db/.

Invariants enforced:
    - Flush-only: the store never commits or rolls back.  The caller owns
      the transaction (``session_scope()``), so every put made during one
      service call is committed or discarded together.
    - Newest first: reads order by ``position`` descending; an insert takes
      ``max(position) + 1`` within its collection, an update keeps its
      position.

Failure modes:
    - IntegrityError if another writer inserts the same key concurrently.
      The kernel assumes a single writer.
"""

import copy
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from cash_kernel.logging_config import get_logger
from cash_kernel.models.ledger_record import LedgerRecord
from cash_kernel.store.base import Collection, LedgerStore, record_key

logger = get_logger("store.sqlalchemy")


class SqlAlchemyLedgerStore(LedgerStore):
    """Record store on a caller-owned SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, collection: Collection) -> list[dict[str, Any]]:
        rows = self.session.execute(
            select(LedgerRecord.payload)
            .where(LedgerRecord.collection == collection.value)
            .order_by(LedgerRecord.position.desc())
        ).scalars()
        return [copy.deepcopy(payload) for payload in rows]

    def find(self, collection: Collection, key: str) -> dict[str, Any] | None:
        row = self._row(collection, key)
        return copy.deepcopy(row.payload) if row is not None else None

    def put(self, collection: Collection, record: dict[str, Any]) -> None:
        key = record_key(collection, record)
        row = self._row(collection, key)
        if row is not None:
            # JSON columns do not track in-place mutation; assign a new dict.
            row.payload = copy.deepcopy(record)
        else:
            top = self.session.execute(
                select(func.max(LedgerRecord.position)).where(
                    LedgerRecord.collection == collection.value
                )
            ).scalar()
            self.session.add(
                LedgerRecord(
                    collection=collection.value,
                    record_key=key,
                    position=(top or 0) + 1,
                    payload=copy.deepcopy(record),
                )
            )
        self.session.flush()
        logger.debug(
            "record_stored",
            extra={"collection": collection.value, "record_key": key},
        )

    def delete(self, collection: Collection, key: str) -> None:
        self.session.execute(
            delete(LedgerRecord).where(
                LedgerRecord.collection == collection.value,
                LedgerRecord.record_key == key,
            )
        )
        self.session.flush()

    def _row(self, collection: Collection, key: str) -> LedgerRecord | None:
        return self.session.execute(
            select(LedgerRecord).where(
                LedgerRecord.collection == collection.value,
                LedgerRecord.record_key == key,
            )
        ).scalar_one_or_none()
