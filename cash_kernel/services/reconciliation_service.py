"""
ReconciliationService -- daily entries, back-safe withdrawals, balances.

Responsibility:
    Orchestrates every ledger write: creating and editing daily entries,
    deleting them, creating/editing/deleting back-safe withdrawals, and the
    manual approval of unbalanced entries.  Keeps the stored entries, their
    derived figures and the safe balance snapshot consistent with each
    other.

Architecture position:
    Kernel > Services -- imperative shell around the pure BalanceCalculator
    and TransactionProjector.  Balance changes go through
    SafeBalanceService, which journals each delta.

Invariants enforced:
    - Derived entry fields come from one ``reconcile()`` call; they are
      never set independently.
    - Conservation: back_safe == opening + sum(to_back_safe) -
      sum(withdrawal amounts).  Each operation applies exactly the delta it
      introduces, and deleting an entry or a withdrawal applies the exact
      inverse of creating it.
    - Check-then-write: every limit check runs before the first store
      write of an operation.

Failure modes:
    - ValidationError: missing/invalid entry date, non-positive withdrawal
      amount, approving an entry that is already balanced.
    - InsufficientBalanceError: withdrawal (or its increase) exceeds the back
      safe; an entry edit or delete would pull more out of the back safe
      than it holds.
    - EntryNotFoundError / WithdrawalNotFoundError: update and approval
      paths targeting an unknown id.  Deletes of unknown ids are no-ops.
    - ClosedMonthError: ledger change inside a closed month, only when
      ``lock_closed_months`` is set.

Audit relevance:
    Every write logs a structured event (``entry_saved``,
    ``withdrawal_created`` ...) and every balance change leaves a
    BalanceMovement behind.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from cash_kernel.db.types import ZERO, coerce_money
from cash_kernel.domain.balance_calculator import (
    latest_entry,
    previous_balance,
    reconcile,
    reconstruct_back_safe,
)
from cash_kernel.domain.clock import Clock, SystemClock
from cash_kernel.domain.months import month_of
from cash_kernel.domain.records import (
    BackSafeTransaction,
    BackSafeWithdrawal,
    DailyEntry,
    MovementKind,
    Safe,
    SafeBalances,
    TransactionType,
)
from cash_kernel.domain.settings import KernelSettings
from cash_kernel.domain.transaction_projector import project_transactions
from cash_kernel.exceptions import (
    BalanceDriftError,
    ClosedMonthError,
    EntryNotFoundError,
    ValidationError,
    WithdrawalNotFoundError,
)
from cash_kernel.logging_config import LogContext, get_logger
from cash_kernel.selectors.ledger_selector import LedgerSelector
from cash_kernel.services.balance_service import SafeBalanceService
from cash_kernel.store.base import Collection, LedgerStore

logger = get_logger("services.reconciliation")

_MONEY_FIELDS = ("cash_in", "deposited", "to_back_safe", "left_in_front")


class ReconciliationService:
    """
    Entry and withdrawal orchestration.

    Usage::

        service = ReconciliationService(store, clock)
        entry = service.create_or_update_entry({
            "date": "2024-03-01", "cash_in": "50", "deposited": "20",
            "to_back_safe": "30", "left_in_front": "100",
        })
        service.create_withdrawal("40", "bank deposit")
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
        self.balances = SafeBalanceService(store, self._clock)

    # =========================================================================
    # Reads
    # =========================================================================

    def previous_balance(self) -> Decimal:
        """Front-safe balance the next new entry is reconciled against."""
        return previous_balance(self._selector.entries(), self.balances.current().front_safe)

    def history(self, limit: int | None = None) -> list[DailyEntry]:
        """Entries, most recently dated first."""
        entries = sorted(
            self._selector.entries(),
            key=lambda e: (e.date, e.created_at),
            reverse=True,
        )
        return entries[:limit] if limit is not None else entries

    def withdrawals(self) -> list[BackSafeWithdrawal]:
        return self._selector.withdrawals()

    def back_safe_transactions(
        self,
        month: str | None = None,
        type: TransactionType | str | None = None,
    ) -> list[BackSafeTransaction]:
        """Back-safe timeline, recomputed from the ledger on every call."""
        if isinstance(type, str):
            type = TransactionType(type)
        return project_transactions(
            self._selector.entries(),
            self._selector.withdrawals(),
            month=month,
            type=type,
        )

    # =========================================================================
    # Opening balances
    # =========================================================================

    def open_balances(self, front_safe: Any, back_safe: Any, note: str | None = None) -> SafeBalances:
        """Set the amounts both safes start from.  See SafeBalanceService."""
        return self.balances.open_balances(front_safe, back_safe, note=note)

    # =========================================================================
    # Daily entries
    # =========================================================================

    def create_or_update_entry(
        self,
        entry: Mapping[str, Any],
        is_editing: bool = False,
        previous_to_back_safe: Any = None,
    ) -> DailyEntry:
        """
        Save a daily entry from raw input and update the balances.

        Args:
            entry: Raw fields -- ``date`` (required), ``cash_in``,
                ``deposited``, ``to_back_safe``, ``left_in_front``,
                optional ``id`` and ``notes``.  Money fields are coerced
                leniently; bad input becomes zero.
            is_editing: Update the stored entry with ``entry["id"]`` in
                place.  Without a matching stored entry a new one is
                inserted.
            previous_to_back_safe: Transfer amount the back safe already
                holds for this entry.  Defaults to the stored entry's
                ``to_back_safe`` on an edit and to zero otherwise.

        Returns:
            The stored entry.

        Raises:
            ValidationError: ``date`` missing or not ``YYYY-MM-DD``, or
                ``id`` names a stored entry while ``is_editing`` is False.
            InsufficientBalanceError: Lowering the transfer would take more
                out of the back safe than it holds.
            ClosedMonthError: Entry dated in a closed month (when locked).
        """
        day = _require_date(entry.get("date"))
        amounts = {name: coerce_money(entry.get(name)) for name in _MONEY_FIELDS}
        notes = _clean_text(entry.get("notes"))

        existing = None
        entry_id = entry.get("id")
        if entry_id:
            existing = self._selector.get_entry(str(entry_id))
        if existing is not None and not is_editing:
            raise ValidationError("id", f"entry {entry_id} already exists; save it as an edit")

        self._require_open_month(day)
        if existing is not None:
            self._require_open_month(existing.date)
            previous = existing.previous_balance
            prior_transfer = existing.to_back_safe
        else:
            previous = self.previous_balance()
            prior_transfer = ZERO
        if previous_to_back_safe is not None:
            prior_transfer = coerce_money(previous_to_back_safe)

        back_delta = amounts["to_back_safe"] - prior_transfer
        if back_delta < ZERO:
            self.balances.require_back_safe(-back_delta)

        figures = reconcile(
            previous,
            amounts["cash_in"],
            amounts["deposited"],
            amounts["to_back_safe"],
            amounts["left_in_front"],
            tolerance=self._settings.balance_tolerance,
        )
        now = self._clock.now()

        if existing is not None:
            saved = replace(
                existing,
                date=day,
                previous_balance=previous,
                expected_front_safe=figures.expected_front_safe,
                difference=figures.difference,
                is_balanced=figures.is_balanced,
                notes=notes,
                updated_at=now,
                **amounts,
            )
            kind = MovementKind.ENTRY_EDIT
        else:
            saved = DailyEntry(
                id=str(entry_id) if entry_id else str(uuid4()),
                date=day,
                previous_balance=previous,
                expected_front_safe=figures.expected_front_safe,
                difference=figures.difference,
                is_balanced=figures.is_balanced,
                notes=notes,
                created_at=now,
                updated_at=now,
                **amounts,
            )
            kind = MovementKind.ENTRY

        with LogContext.bind(entry_id=saved.id):
            self.store.put(Collection.ENTRIES, saved.to_record())
            front_delta = saved.left_in_front - self.balances.current().front_safe
            self.balances.apply(
                kind=kind,
                front_delta=front_delta,
                back_delta=back_delta,
                source_id=saved.id,
            )
            logger.info(
                "entry_saved",
                extra={
                    "date": saved.date,
                    "editing": existing is not None,
                    "expected_front_safe": saved.expected_front_safe,
                    "difference": saved.difference,
                    "is_balanced": saved.is_balanced,
                    "back_safe_delta": back_delta,
                },
            )
            if not saved.is_balanced:
                logger.warning(
                    "entry_discrepancy",
                    extra={"date": saved.date, "difference": saved.difference},
                )
        return saved

    def delete_entry(self, entry_id: str) -> DailyEntry | None:
        """
        Delete an entry and reverse its balance effects.

        The entry's transfer is taken back out of the back safe.  If it was
        the latest entry, the front safe returns to the balance the entry
        was reconciled against.  Unknown ids are ignored.

        Returns:
            The deleted entry, or None when nothing was deleted.
        """
        existing = self._selector.get_entry(entry_id)
        if existing is None:
            logger.info("entry_delete_ignored", extra={"entry_id": entry_id})
            return None

        self._require_open_month(existing.date)
        if existing.to_back_safe > ZERO:
            self.balances.require_back_safe(existing.to_back_safe)

        was_latest = latest_entry(self._selector.entries()) == existing
        front_delta = ZERO
        if was_latest:
            front_delta = existing.previous_balance - self.balances.current().front_safe

        self.store.delete(Collection.ENTRIES, entry_id)
        self.balances.apply(
            kind=MovementKind.ENTRY_DELETE,
            front_delta=front_delta,
            back_delta=-existing.to_back_safe,
            source_id=entry_id,
        )
        logger.info(
            "entry_deleted",
            extra={
                "entry_id": entry_id,
                "date": existing.date,
                "back_safe_reversed": existing.to_back_safe,
            },
        )
        return existing

    def approve_entry(self, entry_id: str, note: str | None = None) -> DailyEntry:
        """
        Acknowledge the discrepancy of an unbalanced entry.

        Metadata only: amounts and derived figures are untouched.

        Raises:
            EntryNotFoundError: Unknown id.
            ValidationError: The entry is balanced; there is nothing to
                approve.
        """
        existing = self._require_entry(entry_id)
        if existing.is_balanced:
            raise ValidationError("entry", f"{entry_id} is balanced; nothing to approve")

        now = self._clock.now()
        approved = replace(
            existing,
            manually_approved=True,
            approval_note=_clean_text(note),
            approved_at=now,
            updated_at=now,
        )
        self.store.put(Collection.ENTRIES, approved.to_record())
        logger.info(
            "entry_approved",
            extra={"entry_id": entry_id, "difference": existing.difference},
        )
        return approved

    def remove_approval(self, entry_id: str) -> DailyEntry:
        """Clear a manual approval.  Raises EntryNotFoundError."""
        existing = self._require_entry(entry_id)
        cleared = replace(
            existing,
            manually_approved=False,
            approval_note=None,
            approved_at=None,
            updated_at=self._clock.now(),
        )
        self.store.put(Collection.ENTRIES, cleared.to_record())
        logger.info("entry_approval_removed", extra={"entry_id": entry_id})
        return cleared

    # =========================================================================
    # Back-safe withdrawals
    # =========================================================================

    def create_withdrawal(
        self,
        amount: Any,
        reason: str | None,
        withdrawal_date: Any = None,
    ) -> BackSafeWithdrawal:
        """
        Take cash out of the back safe.

        Raises:
            ValidationError: Amount is not positive, or the date is invalid.
            InsufficientBalanceError: Amount exceeds the back safe.  An
                amount exactly equal to the balance is allowed.
        """
        value = _require_positive(amount)
        day = _require_date(withdrawal_date) if withdrawal_date else self._clock.today().isoformat()
        self._require_open_month(day)
        self.balances.require_back_safe(value)

        withdrawal = BackSafeWithdrawal(
            id=str(uuid4()),
            date=day,
            amount=value,
            reason=_clean_text(reason) or "",
            created_at=self._clock.now(),
        )
        with LogContext.bind(withdrawal_id=withdrawal.id):
            self.store.put(Collection.WITHDRAWALS, withdrawal.to_record())
            balances = self.balances.adjust_back_safe(
                -value, MovementKind.WITHDRAWAL, source_id=withdrawal.id
            )
            logger.info(
                "withdrawal_created",
                extra={"amount": value, "back_safe": balances.back_safe},
            )
        return withdrawal

    def update_withdrawal(
        self,
        withdrawal_id: str,
        new_amount: Any,
        new_reason: str | None = None,
    ) -> BackSafeWithdrawal:
        """
        Change a withdrawal's amount and/or reason.

        The back safe moves by ``-(new - original)``.

        Raises:
            WithdrawalNotFoundError: Unknown id.
            ValidationError: New amount is not positive.
            InsufficientBalanceError: The increase exceeds the back safe.
        """
        original = self._selector.get_withdrawal(withdrawal_id)
        if original is None:
            raise WithdrawalNotFoundError(withdrawal_id)
        self._require_open_month(original.date)

        value = _require_positive(new_amount)
        delta = value - original.amount
        if delta > ZERO:
            self.balances.require_back_safe(delta)

        updated = replace(
            original,
            amount=value,
            reason=_clean_text(new_reason) or original.reason,
            updated_at=self._clock.now(),
        )
        self.store.put(Collection.WITHDRAWALS, updated.to_record())
        balances = self.balances.adjust_back_safe(
            -delta, MovementKind.WITHDRAWAL_EDIT, source_id=withdrawal_id
        )
        logger.info(
            "withdrawal_updated",
            extra={
                "withdrawal_id": withdrawal_id,
                "delta": delta,
                "back_safe": balances.back_safe,
            },
        )
        return updated

    def delete_withdrawal(self, withdrawal_id: str) -> BackSafeWithdrawal | None:
        """
        Delete a withdrawal and put its amount back into the back safe.

        Unknown ids are ignored.
        """
        withdrawal = self._selector.get_withdrawal(withdrawal_id)
        if withdrawal is None:
            logger.info("withdrawal_delete_ignored", extra={"withdrawal_id": withdrawal_id})
            return None
        self._require_open_month(withdrawal.date)

        self.store.delete(Collection.WITHDRAWALS, withdrawal_id)
        balances = self.balances.adjust_back_safe(
            withdrawal.amount, MovementKind.WITHDRAWAL_DELETE, source_id=withdrawal_id
        )
        logger.info(
            "withdrawal_deleted",
            extra={
                "withdrawal_id": withdrawal_id,
                "restored": withdrawal.amount,
                "back_safe": balances.back_safe,
            },
        )
        return withdrawal

    # =========================================================================
    # Verification
    # =========================================================================

    def verify_balances(self) -> SafeBalances:
        """
        Check the snapshot against the ledger and the movement journal.

        Returns:
            The verified snapshot.

        Raises:
            BalanceDriftError: Back safe differs from opening + transfers -
                withdrawals, or either safe differs from the journal replay.
        """
        snapshot = self.balances.current()
        reconstructed = reconstruct_back_safe(
            self.balances.opening_back_safe(),
            self._selector.entries(),
            self._selector.withdrawals(),
        )
        replayed = self.balances.replay()

        checks = (
            (Safe.BACK, snapshot.back_safe, reconstructed),
            (Safe.BACK, snapshot.back_safe, replayed.back_safe),
            (Safe.FRONT, snapshot.front_safe, replayed.front_safe),
        )
        for safe, have, want in checks:
            if have != want:
                logger.error(
                    "balance_drift_detected",
                    extra={"safe": safe.value, "snapshot": have, "expected": want},
                )
                raise BalanceDriftError(safe.value, have, want)

        logger.info(
            "balances_verified",
            extra={"front_safe": snapshot.front_safe, "back_safe": snapshot.back_safe},
        )
        return snapshot

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_entry(self, entry_id: str) -> DailyEntry:
        entry = self._selector.get_entry(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    def _require_open_month(self, day: str) -> None:
        if not self._settings.lock_closed_months:
            return
        month = month_of(day)
        if month in self._selector.closed_months():
            logger.warning("closed_month_change_rejected", extra={"month": month, "date": day})
            raise ClosedMonthError(month, day)


def _require_date(value: Any) -> str:
    """ISO date string from user input, or ValidationError."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError("date", "is required")
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        raise ValidationError("date", f"expected YYYY-MM-DD, got {text!r}") from None


def _require_positive(amount: Any) -> Decimal:
    value = coerce_money(amount)
    if value <= ZERO:
        raise ValidationError("amount", "must be greater than zero")
    return value


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
