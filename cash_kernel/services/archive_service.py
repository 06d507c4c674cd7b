"""
MonthArchiveService -- month close and balance carry-forward.

Responsibility:
    Closes a calendar month by copying its entries and withdrawals into an
    archive record, and answers the month-level questions callers ask
    before and after a close: starting balances, a live preview, which
    months exist and which can still be closed.

Architecture position:
    Kernel > Services -- imperative shell.  Reads the ledger through
    LedgerSelector and writes only the ``archives`` collection.  Never
    changes entries, withdrawals or the balance snapshot.

Invariants enforced:
    - Month lifecycle is OPEN -> CLOSED.  There is no reopen.
    - Starting balances of month M are the ending balances of the latest
      closed archive with ``month < M`` (plain string comparison on
      ``YYYY-MM`` keys), or zero for both safes.
    - Archives are by-value copies: later ledger edits never reach them.
    - Re-closing overwrites the month's archive.  With no ledger changes in
      between, the new archive equals the old one except ``closed_at``.

Failure modes:
    - ValidationError: month key is not ``YYYY-MM``.
    - ArchiveNotFoundError: ``get_archive`` for a month never closed.
    - A month without entries is not an error: ``close_month`` returns
      None and writes nothing.

Audit relevance:
    ``month_closed`` is logged with the starting and ending balances and
    the counts of archived records.  A refused close of an empty month
    logs ``month_close_skipped``.
"""

from __future__ import annotations

from decimal import Decimal

from cash_kernel.db.types import ZERO
from cash_kernel.domain.balance_calculator import latest_entry
from cash_kernel.domain.clock import Clock, SystemClock
from cash_kernel.domain.months import current_month, month_of, validate_month
from cash_kernel.domain.records import (
    MonthBalances,
    MonthlyArchive,
    MonthStatus,
)
from cash_kernel.domain.settings import EndingBalanceSource, KernelSettings
from cash_kernel.exceptions import ArchiveNotFoundError
from cash_kernel.logging_config import LogContext, get_logger
from cash_kernel.selectors.ledger_selector import LedgerSelector
from cash_kernel.store.base import Collection, LedgerStore

logger = get_logger("services.archive")


class MonthArchiveService:
    """
    Month close, starting balances and month listings.

    Contract:
        Month arguments are ``YYYY-MM`` strings.  Returned archives are
        frozen ``MonthlyArchive`` records; ``preview_month`` returns an
        unstored one with ``is_closed=False``.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        settings: KernelSettings | None = None,
    ):
        self.store = store
        self._clock = clock or SystemClock()
        self._settings = settings or KernelSettings()
        self._selector = LedgerSelector(store)

    # =========================================================================
    # Close
    # =========================================================================

    def close_month(self, month: str) -> MonthlyArchive | None:
        """
        Archive ``month`` and mark it closed.

        Returns:
            The stored archive, or None when the month has no entries.
        """
        validate_month(month)
        with LogContext.bind(month=month):
            entries = self._selector.entries_for_month(month)
            if not entries:
                logger.info("month_close_skipped", extra={"reason": "no_entries"})
                return None

            withdrawals = self._selector.withdrawals_for_month(month)
            starting = self.get_month_starting_balances(month)
            if self._settings.ending_balance_source == EndingBalanceSource.LEDGER:
                ending = _ledger_ending(starting, entries, withdrawals)
            else:
                snapshot = self._selector.balances()
                ending = MonthBalances(snapshot.front_safe, snapshot.back_safe)

            archive = MonthlyArchive(
                month=month,
                starting_front_safe=starting.front_safe,
                starting_back_safe=starting.back_safe,
                ending_front_safe=ending.front_safe,
                ending_back_safe=ending.back_safe,
                entries=tuple(entries),
                withdrawals=tuple(withdrawals),
                is_closed=True,
                closed_at=self._clock.now(),
            )
            self.store.put(Collection.ARCHIVES, archive.to_record())
            logger.info(
                "month_closed",
                extra={
                    "starting_front_safe": archive.starting_front_safe,
                    "starting_back_safe": archive.starting_back_safe,
                    "ending_front_safe": archive.ending_front_safe,
                    "ending_back_safe": archive.ending_back_safe,
                    "ending_source": self._settings.ending_balance_source.value,
                    "entry_count": len(archive.entries),
                    "withdrawal_count": len(archive.withdrawals),
                },
            )
        return archive

    # =========================================================================
    # Queries
    # =========================================================================

    def get_month_starting_balances(self, month: str) -> MonthBalances:
        """Ending balances of the latest closed archive before ``month``."""
        validate_month(month)
        prior = [a for a in self._selector.archives() if a.is_closed and a.month < month]
        if not prior:
            return MonthBalances()
        latest = max(prior, key=lambda a: a.month)
        return latest.ending_balances

    def preview_month(self, month: str) -> MonthlyArchive:
        """
        What closing ``month`` from its own ledger would produce.

        Never stored.  Ending balances are always ledger-derived here,
        whatever ``ending_balance_source`` is configured for closing.
        """
        validate_month(month)
        entries = self._selector.entries_for_month(month)
        withdrawals = self._selector.withdrawals_for_month(month)
        starting = self.get_month_starting_balances(month)
        ending = _ledger_ending(starting, entries, withdrawals)
        return MonthlyArchive(
            month=month,
            starting_front_safe=starting.front_safe,
            starting_back_safe=starting.back_safe,
            ending_front_safe=ending.front_safe,
            ending_back_safe=ending.back_safe,
            entries=tuple(entries),
            withdrawals=tuple(withdrawals),
            is_closed=False,
        )

    def list_available_months(self) -> list[str]:
        """Current month, every entry month and every archived month, newest first."""
        months = {current_month(self._clock)}
        months.update(month_of(e.date) for e in self._selector.entries())
        months.update(a.month for a in self._selector.archives())
        return sorted(months, reverse=True)

    def closable_months(self) -> list[str]:
        this_month = current_month(self._clock)
        closed = self._selector.closed_months()
        return [
            m for m in self.list_available_months()
            if m < this_month and m not in closed
        ]

    def month_status(self, month: str) -> MonthStatus:
        validate_month(month)
        if month in self._selector.closed_months():
            return MonthStatus.CLOSED
        return MonthStatus.OPEN

    def get_archive(self, month: str) -> MonthlyArchive:
        validate_month(month)
        archive = self._selector.get_archive(month)
        if archive is None:
            raise ArchiveNotFoundError(month)
        return archive

    def list_archives(self) -> list[MonthlyArchive]:
        return self._selector.archives()


def _ledger_ending(starting: MonthBalances, entries, withdrawals) -> MonthBalances:
    # front: last counted amount of the month; back: starting + net month flow
    transfers = sum((e.to_back_safe for e in entries), ZERO)
    taken = sum((w.amount for w in withdrawals), ZERO)
    last = latest_entry(entries)
    front: Decimal = last.left_in_front if last is not None else starting.front_safe
    return MonthBalances(front, starting.back_safe + transfers - taken)
