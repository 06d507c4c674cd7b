"""
cash_kernel.domain.records
==========================

Responsibility:
    Frozen dataclass value objects for everything the kernel stores or
    returns: daily entries, back-safe withdrawals, the balance snapshot,
    monthly archives, balance movements and the derived back-safe
    transactions.  Each persisted type converts to and from the plain
    JSON-compatible dict the record store holds.

Invariants enforced:
    - All monetary fields are ``Decimal`` -- never ``float``.  In records
      they are serialised as strings so a JSON round trip is exact.
    - All value objects are frozen.  "Mutation" is ``dataclasses.replace``
      followed by a store put.
    - ``MonthlyArchive`` holds tuples of frozen records: an archive is a
      by-value copy and cannot be changed through the live ledger.

Failure modes:
    - ``from_record`` on a malformed record -> ``KeyError`` or
      ``decimal.InvalidOperation``.  Persisted data is trusted; lenient
      coercion only happens on user input (see ``db.types.coerce_money``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from cash_kernel.db.types import ZERO, money_from_str


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class Safe(str, Enum):
    """The two cash locations."""

    FRONT = "front"
    BACK = "back"


class TransactionType(str, Enum):
    """Back-safe transaction direction."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class MovementKind(str, Enum):
    """What caused a balance movement."""

    OPENING = "opening"
    ENTRY = "entry"
    ENTRY_EDIT = "entry_edit"
    ENTRY_DELETE = "entry_delete"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_EDIT = "withdrawal_edit"
    WITHDRAWAL_DELETE = "withdrawal_delete"


class MonthStatus(str, Enum):
    """Month lifecycle.  OPEN -> CLOSED; CLOSED is terminal."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class DailyEntry:
    """
    One reconciliation event for the front safe.

    ``previous_balance`` is the front-safe amount the entry was reconciled
    against; keeping it makes ``expected_front_safe``, ``difference`` and
    ``is_balanced`` reproducible from the stored record alone.
    """

    id: str
    date: str
    cash_in: Decimal
    deposited: Decimal
    to_back_safe: Decimal
    left_in_front: Decimal
    previous_balance: Decimal
    expected_front_safe: Decimal
    difference: Decimal
    is_balanced: bool
    created_at: datetime
    updated_at: datetime
    notes: str | None = None
    manually_approved: bool = False
    approval_note: str | None = None
    approved_at: datetime | None = None

    @property
    def month(self) -> str:
        return self.date[:7]

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "cash_in": str(self.cash_in),
            "deposited": str(self.deposited),
            "to_back_safe": str(self.to_back_safe),
            "left_in_front": str(self.left_in_front),
            "previous_balance": str(self.previous_balance),
            "expected_front_safe": str(self.expected_front_safe),
            "difference": str(self.difference),
            "is_balanced": self.is_balanced,
            "notes": self.notes,
            "manually_approved": self.manually_approved,
            "approval_note": self.approval_note,
            "approved_at": _ts(self.approved_at),
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> DailyEntry:
        return cls(
            id=record["id"],
            date=record["date"],
            cash_in=money_from_str(record["cash_in"]),
            deposited=money_from_str(record["deposited"]),
            to_back_safe=money_from_str(record["to_back_safe"]),
            left_in_front=money_from_str(record["left_in_front"]),
            previous_balance=money_from_str(record.get("previous_balance", "0")),
            expected_front_safe=money_from_str(record["expected_front_safe"]),
            difference=money_from_str(record["difference"]),
            is_balanced=bool(record["is_balanced"]),
            notes=record.get("notes"),
            manually_approved=bool(record.get("manually_approved", False)),
            approval_note=record.get("approval_note"),
            approved_at=_parse_ts(record.get("approved_at")),
            created_at=_parse_ts(record["created_at"]),
            updated_at=_parse_ts(record["updated_at"]),
        )


@dataclass(frozen=True)
class BackSafeWithdrawal:
    """A manual removal of cash from the back safe."""

    id: str
    date: str
    amount: Decimal
    reason: str
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def month(self) -> str:
        return self.date[:7]

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "amount": str(self.amount),
            "reason": self.reason,
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> BackSafeWithdrawal:
        return cls(
            id=record["id"],
            date=record["date"],
            amount=money_from_str(record["amount"]),
            reason=record.get("reason", ""),
            created_at=_parse_ts(record["created_at"]),
            updated_at=_parse_ts(record.get("updated_at")),
        )


@dataclass(frozen=True)
class BackSafeTransaction:
    """
    Derived view of one back-safe movement.  Never persisted.

    Deposits come from an entry's ``to_back_safe``; withdrawals from a
    ``BackSafeWithdrawal``.  Exactly one of the source ids is set.
    """

    id: str
    type: TransactionType
    date: str
    amount: Decimal
    description: str
    created_at: datetime
    source_entry_id: str | None = None
    source_withdrawal_id: str | None = None


@dataclass(frozen=True)
class SafeBalances:
    """Singleton snapshot of both safes.  A cache of the ledger."""

    KEY = "current"

    front_safe: Decimal = ZERO
    back_safe: Decimal = ZERO
    last_updated: datetime | None = None

    @property
    def total(self) -> Decimal:
        return self.front_safe + self.back_safe

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.KEY,
            "front_safe": str(self.front_safe),
            "back_safe": str(self.back_safe),
            "last_updated": _ts(self.last_updated),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> SafeBalances:
        return cls(
            front_safe=money_from_str(record["front_safe"]),
            back_safe=money_from_str(record["back_safe"]),
            last_updated=_parse_ts(record.get("last_updated")),
        )


@dataclass(frozen=True)
class MonthBalances:
    """Front/back amounts at a month boundary."""

    front_safe: Decimal = ZERO
    back_safe: Decimal = ZERO


@dataclass(frozen=True)
class MonthlyArchive:
    """
    Closed (or previewed) month.

    A stored archive always has ``is_closed=True``; ``preview_month``
    returns unstored instances with ``is_closed=False``.
    """

    month: str
    starting_front_safe: Decimal
    starting_back_safe: Decimal
    ending_front_safe: Decimal
    ending_back_safe: Decimal
    entries: tuple[DailyEntry, ...] = field(default_factory=tuple)
    withdrawals: tuple[BackSafeWithdrawal, ...] = field(default_factory=tuple)
    is_closed: bool = False
    closed_at: datetime | None = None

    @property
    def starting_balances(self) -> MonthBalances:
        return MonthBalances(self.starting_front_safe, self.starting_back_safe)

    @property
    def ending_balances(self) -> MonthBalances:
        return MonthBalances(self.ending_front_safe, self.ending_back_safe)

    def to_record(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "starting_front_safe": str(self.starting_front_safe),
            "starting_back_safe": str(self.starting_back_safe),
            "ending_front_safe": str(self.ending_front_safe),
            "ending_back_safe": str(self.ending_back_safe),
            "entries": [e.to_record() for e in self.entries],
            "withdrawals": [w.to_record() for w in self.withdrawals],
            "is_closed": self.is_closed,
            "closed_at": _ts(self.closed_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> MonthlyArchive:
        return cls(
            month=record["month"],
            starting_front_safe=money_from_str(record["starting_front_safe"]),
            starting_back_safe=money_from_str(record["starting_back_safe"]),
            ending_front_safe=money_from_str(record["ending_front_safe"]),
            ending_back_safe=money_from_str(record["ending_back_safe"]),
            entries=tuple(DailyEntry.from_record(e) for e in record.get("entries", [])),
            withdrawals=tuple(
                BackSafeWithdrawal.from_record(w) for w in record.get("withdrawals", [])
            ),
            is_closed=bool(record.get("is_closed", False)),
            closed_at=_parse_ts(record.get("closed_at")),
        )


@dataclass(frozen=True)
class BalanceMovement:
    """
    One journaled change to a safe balance.

    The movement journal is append-only; summing ``delta`` per safe
    reproduces the snapshot.
    """

    id: str
    safe: Safe
    delta: Decimal
    kind: MovementKind
    created_at: datetime
    source_id: str | None = None
    note: str | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "safe": self.safe.value,
            "delta": str(self.delta),
            "kind": self.kind.value,
            "source_id": self.source_id,
            "note": self.note,
            "created_at": _ts(self.created_at),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> BalanceMovement:
        return cls(
            id=record["id"],
            safe=Safe(record["safe"]),
            delta=money_from_str(record["delta"]),
            kind=MovementKind(record["kind"]),
            source_id=record.get("source_id"),
            note=record.get("note"),
            created_at=_parse_ts(record["created_at"]),
        )
