"""
Tests for the back-safe transaction projection.

The projection is pure: same ledger in, same timeline out, with ids derived
from the source records so nothing is ever duplicated.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from cash_kernel.domain.records import (
    BackSafeWithdrawal,
    DailyEntry,
    TransactionType,
)
from cash_kernel.domain.transaction_projector import (
    deposit_transaction_id,
    project_transactions,
    withdrawal_transaction_id,
)

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _entry(entry_id, date, to_back_safe, minutes):
    created = T0 + timedelta(minutes=minutes)
    return DailyEntry(
        id=entry_id,
        date=date,
        cash_in=Decimal("0"),
        deposited=Decimal("0"),
        to_back_safe=Decimal(to_back_safe),
        left_in_front=Decimal("0"),
        previous_balance=Decimal("0"),
        expected_front_safe=Decimal("0"),
        difference=Decimal("0"),
        is_balanced=True,
        created_at=created,
        updated_at=created,
    )


def _withdrawal(withdrawal_id, date, amount, minutes, reason="bank deposit"):
    return BackSafeWithdrawal(
        id=withdrawal_id,
        date=date,
        amount=Decimal(amount),
        reason=reason,
        created_at=T0 + timedelta(minutes=minutes),
    )


ENTRIES = [
    _entry("e1", "2024-02-28", "30", minutes=0),
    _entry("e2", "2024-03-01", "0", minutes=10),
    _entry("e3", "2024-03-02", "25", minutes=20),
]
WITHDRAWALS = [
    _withdrawal("w1", "2024-03-01", "40", minutes=15),
]


class TestProjectTransactions:

    def test_zero_transfers_are_not_deposits(self):
        ids = [t.id for t in project_transactions(ENTRIES, WITHDRAWALS)]
        assert "deposit-e2" not in ids

    def test_newest_first(self):
        ids = [t.id for t in project_transactions(ENTRIES, WITHDRAWALS)]
        assert ids == ["deposit-e3", "withdrawal-w1", "deposit-e1"]

    def test_deterministic_ids(self):
        assert deposit_transaction_id("e1") == "deposit-e1"
        assert withdrawal_transaction_id("w1") == "withdrawal-w1"

    def test_recomputation_is_identical(self):
        assert project_transactions(ENTRIES, WITHDRAWALS) == project_transactions(
            ENTRIES, WITHDRAWALS
        )

    def test_back_links(self):
        by_id = {t.id: t for t in project_transactions(ENTRIES, WITHDRAWALS)}
        deposit = by_id["deposit-e3"]
        assert deposit.type == TransactionType.DEPOSIT
        assert deposit.source_entry_id == "e3"
        assert deposit.source_withdrawal_id is None
        assert deposit.amount == Decimal("25")
        assert deposit.description == "Transfer from front safe"

        withdrawal = by_id["withdrawal-w1"]
        assert withdrawal.type == TransactionType.WITHDRAWAL
        assert withdrawal.source_withdrawal_id == "w1"
        assert withdrawal.source_entry_id is None
        assert withdrawal.description == "bank deposit"

    def test_month_filter(self):
        ids = [t.id for t in project_transactions(ENTRIES, WITHDRAWALS, month="2024-03")]
        assert ids == ["deposit-e3", "withdrawal-w1"]

    def test_type_filter(self):
        result = project_transactions(ENTRIES, WITHDRAWALS, type=TransactionType.WITHDRAWAL)
        assert [t.id for t in result] == ["withdrawal-w1"]

    def test_deleting_a_source_removes_its_transaction(self):
        result = project_transactions(ENTRIES[:2], [])
        assert [t.id for t in result] == ["deposit-e1"]

    def test_empty_ledger(self):
        assert project_transactions([], []) == []
