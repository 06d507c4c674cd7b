"""
Module: cash_kernel.models.ledger_record
Responsibility: ORM persistence for the key-value record store.  Every
    collection (entries, withdrawals, balances, archives, movements) shares
    one table; a record is addressed by ``(collection, record_key)``.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ``(collection, record_key)`` is unique: put() is an upsert.
    - ``position`` only grows within a collection.  Reads order by
      ``position`` descending, which gives the newest-first convention of
      the store contract.  Updating a record in place keeps its position.

Failure modes:
    - IntegrityError on a duplicate key inserted behind the store's back.
"""

from typing import Any

from sqlalchemy import JSON, BigInteger, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cash_kernel.db.base import TrackedBase


class LedgerRecord(TrackedBase):
    """
    One stored record of one collection.

    ``payload`` holds the record exactly as the domain serialised it
    (money as strings, dates as ISO strings).
    """

    __tablename__ = "ledger_records"

    __table_args__ = (
        UniqueConstraint("collection", "record_key", name="uq_ledger_record_key"),
        Index("idx_ledger_record_position", "collection", "position"),
    )

    collection: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    record_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    position: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    payload: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LedgerRecord {self.collection}/{self.record_key} @{self.position}>"
