"""
TransactionProjector -- derived back-safe timeline.

Responsibility:
    Maps the entry and withdrawal collections into one chronological list of
    ``BackSafeTransaction`` values: a deposit for every entry that moved cash
    into the back safe, a withdrawal for every withdrawal record.

Architecture position:
    Kernel > Domain -- pure functional core.  The projection is recomputed
    on every call and never stored, so editing or deleting a source record
    is reflected the next time it is read.

Invariants enforced:
    - Transaction ids are a pure function of the source id
      (``deposit-<entry id>``, ``withdrawal-<withdrawal id>``); recomputing
      never duplicates a deposit.
    - Output is ordered newest-first by ``created_at``.
"""

from collections.abc import Iterable

from cash_kernel.db.types import ZERO
from cash_kernel.domain.months import in_month
from cash_kernel.domain.records import (
    BackSafeTransaction,
    BackSafeWithdrawal,
    DailyEntry,
    TransactionType,
)

DEPOSIT_PREFIX = "deposit-"
WITHDRAWAL_PREFIX = "withdrawal-"


def deposit_transaction_id(entry_id: str) -> str:
    return f"{DEPOSIT_PREFIX}{entry_id}"


def withdrawal_transaction_id(withdrawal_id: str) -> str:
    return f"{WITHDRAWAL_PREFIX}{withdrawal_id}"


def deposit_from_entry(entry: DailyEntry) -> BackSafeTransaction:
    return BackSafeTransaction(
        id=deposit_transaction_id(entry.id),
        type=TransactionType.DEPOSIT,
        date=entry.date,
        amount=entry.to_back_safe,
        description="Transfer from front safe",
        created_at=entry.created_at,
        source_entry_id=entry.id,
    )


def transaction_from_withdrawal(withdrawal: BackSafeWithdrawal) -> BackSafeTransaction:
    return BackSafeTransaction(
        id=withdrawal_transaction_id(withdrawal.id),
        type=TransactionType.WITHDRAWAL,
        date=withdrawal.date,
        amount=withdrawal.amount,
        description=withdrawal.reason,
        created_at=withdrawal.created_at,
        source_withdrawal_id=withdrawal.id,
    )


def project_transactions(
    entries: Iterable[DailyEntry],
    withdrawals: Iterable[BackSafeWithdrawal],
    month: str | None = None,
    type: TransactionType | None = None,
) -> list[BackSafeTransaction]:
    """
    Build the back-safe timeline.

    Args:
        entries: All daily entries (any order).
        withdrawals: All withdrawals (any order).
        month: Optional ``YYYY-MM`` filter, prefix-matched on ``date``.
        type: Optional transaction type filter.

    Returns:
        Transactions sorted newest-first by creation timestamp.
    """
    transactions = [deposit_from_entry(e) for e in entries if e.to_back_safe > ZERO]
    transactions.extend(transaction_from_withdrawal(w) for w in withdrawals)

    if month is not None:
        transactions = [t for t in transactions if in_month(t.date, month)]
    if type is not None:
        transactions = [t for t in transactions if t.type == type]

    transactions.sort(key=lambda t: t.created_at, reverse=True)
    return transactions
