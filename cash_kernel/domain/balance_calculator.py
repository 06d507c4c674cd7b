"""
BalanceCalculator -- pure front-safe reconciliation arithmetic.

Responsibility:
    Computes the expected front-safe balance, the discrepancy against the
    counted cash, and whether that discrepancy is within tolerance.  Also
    reconstructs the back-safe balance from the ledger for drift checks.

Architecture position:
    Kernel > Domain -- pure functional core.  No I/O, no clock, no store.

Invariants enforced:
    - expected = previous + cash_in - deposited - to_back_safe
    - difference = left_in_front - expected
    - is_balanced = |difference| < tolerance (absolute, not relative)
    The three are only ever produced together by ``reconcile``.

Failure modes:
    None.  Inputs are already-coerced Decimals; negative or absurd values are
    reflected in the output rather than rejected.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from cash_kernel.db.types import ZERO
from cash_kernel.domain.records import BackSafeWithdrawal, DailyEntry

BALANCE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class ReconciliationFigures:
    """The three derived fields of a daily entry."""

    expected_front_safe: Decimal
    difference: Decimal
    is_balanced: bool


def compute_expected(
    previous_balance: Decimal,
    cash_in: Decimal,
    deposited: Decimal,
    to_back_safe: Decimal,
) -> Decimal:
    return previous_balance + cash_in - deposited - to_back_safe


def compute_difference(actual: Decimal, expected: Decimal) -> Decimal:
    return actual - expected


def is_balanced(difference: Decimal, tolerance: Decimal = BALANCE_TOLERANCE) -> bool:
    return abs(difference) < tolerance


def reconcile(
    previous_balance: Decimal,
    cash_in: Decimal,
    deposited: Decimal,
    to_back_safe: Decimal,
    left_in_front: Decimal,
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> ReconciliationFigures:
    """
    Produce all derived entry fields in one step.

    Example:
        reconcile(100, 50, 20, 30, left_in_front=95)
        -> expected 100, difference -5, is_balanced False
    """
    expected = compute_expected(previous_balance, cash_in, deposited, to_back_safe)
    difference = compute_difference(left_in_front, expected)
    return ReconciliationFigures(
        expected_front_safe=expected,
        difference=difference,
        is_balanced=is_balanced(difference, tolerance),
    )


def latest_entry(entries: Iterable[DailyEntry]) -> DailyEntry | None:
    """Most recently dated entry; same-day ties go to the newest created_at."""
    return max(entries, key=lambda e: (e.date, e.created_at), default=None)


def previous_balance(
    entries: Iterable[DailyEntry],
    snapshot_front_safe: Decimal,
) -> Decimal:
    """
    Front-safe balance a new entry starts from.

    ``left_in_front`` of the most recently dated entry, or the snapshot's
    front safe when the ledger has no entries yet.
    """
    last = latest_entry(entries)
    if last is None:
        return snapshot_front_safe
    return last.left_in_front


def reconstruct_back_safe(
    opening: Decimal,
    entries: Iterable[DailyEntry],
    withdrawals: Iterable[BackSafeWithdrawal],
) -> Decimal:
    """opening + sum(to_back_safe) - sum(withdrawal amounts)."""
    deposits = sum((e.to_back_safe for e in entries), ZERO)
    taken = sum((w.amount for w in withdrawals), ZERO)
    return opening + deposits - taken
