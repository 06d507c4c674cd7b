"""LedgerSelector queries over a populated store."""

from decimal import Decimal

import pytest

from cash_kernel.domain.records import SafeBalances
from cash_kernel.selectors.ledger_selector import LedgerSelector


@pytest.fixture
def selector(store):
    return LedgerSelector(store)


def test_entries_for_month(selector, make_entry):
    jan = make_entry("2024-01-31")
    feb = make_entry("2024-02-01")
    make_entry("2024-03-01")

    assert [e.id for e in selector.entries_for_month("2024-01")] == [jan.id]
    assert [e.id for e in selector.entries_for_month("2024-02")] == [feb.id]
    assert selector.entries_for_month("2023-12") == []


def test_entry_for_date(selector, make_entry):
    entry = make_entry("2024-02-10", cash_in="5", left_in_front="5")
    assert selector.entry_for_date("2024-02-10") == entry
    assert selector.entry_for_date("2024-02-11") is None


def test_latest_entry_by_date_not_insertion(selector, make_entry):
    later = make_entry("2024-02-20")
    make_entry("2024-02-05")
    assert selector.latest_entry() == later


def test_get_withdrawal(selector, recon):
    recon.open_balances("0", "100")
    withdrawal = recon.create_withdrawal("30", "bank deposit", withdrawal_date="2024-02-03")

    assert selector.get_withdrawal(withdrawal.id) == withdrawal
    assert selector.get_withdrawal("missing") is None
    assert selector.withdrawals_for_month("2024-02") == [withdrawal]
    assert selector.withdrawals_for_month("2024-03") == []


def test_balances_default_to_zero(selector):
    balances = selector.balances()
    assert balances == SafeBalances()
    assert balances.total == Decimal("0")


def test_movements_follow_writes(selector, recon):
    recon.open_balances("10", "20")
    recon.create_withdrawal("5", "float")
    deltas = sorted(m.delta for m in selector.movements())
    assert deltas == [Decimal("-5"), Decimal("10"), Decimal("20")]
