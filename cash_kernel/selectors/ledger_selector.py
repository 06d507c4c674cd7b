"""
Module: cash_kernel.selectors.ledger_selector
Responsibility: Typed, read-only access to the record store.  Converts raw
    records into frozen domain records and answers the month/date queries
    the services and callers need.
Architecture position: Kernel > Selectors.  May import from store/ and
    domain/.  MUST NOT write: no put(), no delete().
"""

from cash_kernel.domain.balance_calculator import latest_entry
from cash_kernel.domain.months import in_month
from cash_kernel.domain.records import (
    BackSafeWithdrawal,
    BalanceMovement,
    DailyEntry,
    MonthlyArchive,
    SafeBalances,
)
from cash_kernel.store.base import Collection, LedgerStore


class LedgerSelector:
    """Read-only queries over entries, withdrawals, archives and balances."""

    def __init__(self, store: LedgerStore):
        self.store = store

    # Entries

    def entries(self) -> list[DailyEntry]:
        """All entries in store order (newest first)."""
        return [DailyEntry.from_record(r) for r in self.store.get(Collection.ENTRIES)]

    def get_entry(self, entry_id: str) -> DailyEntry | None:
        record = self.store.find(Collection.ENTRIES, entry_id)
        return DailyEntry.from_record(record) if record is not None else None

    def entries_for_month(self, month: str) -> list[DailyEntry]:
        return [e for e in self.entries() if in_month(e.date, month)]

    def entry_for_date(self, day: str) -> DailyEntry | None:
        """First stored entry dated ``day`` (dates are not unique)."""
        return next((e for e in self.entries() if e.date == day), None)

    def latest_entry(self) -> DailyEntry | None:
        return latest_entry(self.entries())

    # Withdrawals

    def withdrawals(self) -> list[BackSafeWithdrawal]:
        return [
            BackSafeWithdrawal.from_record(r)
            for r in self.store.get(Collection.WITHDRAWALS)
        ]

    def get_withdrawal(self, withdrawal_id: str) -> BackSafeWithdrawal | None:
        record = self.store.find(Collection.WITHDRAWALS, withdrawal_id)
        return BackSafeWithdrawal.from_record(record) if record is not None else None

    def withdrawals_for_month(self, month: str) -> list[BackSafeWithdrawal]:
        return [w for w in self.withdrawals() if in_month(w.date, month)]

    # Archives

    def archives(self) -> list[MonthlyArchive]:
        """All archives, sorted descending by month."""
        archives = [
            MonthlyArchive.from_record(r) for r in self.store.get(Collection.ARCHIVES)
        ]
        archives.sort(key=lambda a: a.month, reverse=True)
        return archives

    def get_archive(self, month: str) -> MonthlyArchive | None:
        record = self.store.find(Collection.ARCHIVES, month)
        return MonthlyArchive.from_record(record) if record is not None else None

    def closed_months(self) -> set[str]:
        return {a.month for a in self.archives() if a.is_closed}

    # Balances

    def balances(self) -> SafeBalances:
        record = self.store.find(Collection.BALANCES, SafeBalances.KEY)
        if record is None:
            return SafeBalances()
        return SafeBalances.from_record(record)

    def movements(self) -> list[BalanceMovement]:
        return [
            BalanceMovement.from_record(r) for r in self.store.get(Collection.MOVEMENTS)
        ]
