"""
Typed Exception Hierarchy for the Cash Reconciliation Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the CLI, a web form, a test) need to tell a rejected withdrawal
apart from a missing record without parsing message strings.  Every error:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, display-safe)
  3. Stores its context as attributes (amounts, ids, months)

Example:
    try:
        service.create_withdrawal("150.00", "bank run")
    except InsufficientBalanceError as e:
        show_error(f"Only {e.available} in the back safe")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CashKernelError (base)
    |
    +-- ValidationError
    |
    +-- InsufficientBalanceError
    |
    +-- NotFoundError
    |   +-- EntryNotFoundError
    |   +-- WithdrawalNotFoundError
    |   +-- ArchiveNotFoundError
    |
    +-- ClosedMonthError
    |
    +-- BalanceDriftError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                  | When Raised
----------------------|-------------------------------------------------------
VALIDATION_ERROR      | Required field missing (e.g. entry date)
INSUFFICIENT_BALANCE  | Withdrawal or transfer would drive a safe negative
ENTRY_NOT_FOUND       | Entry id does not exist (update/approve paths)
WITHDRAWAL_NOT_FOUND  | Withdrawal id does not exist (update path)
ARCHIVE_NOT_FOUND     | No archive for the requested month
CLOSED_MONTH          | Ledger edit dated inside a closed month (when locked)
BALANCE_DRIFT         | Snapshot disagrees with the ledger reconstruction
CONFIGURATION_ERROR   | YAML configuration is structurally invalid

Deletes of unknown ids are NOT errors: they are logged no-ops.

All limit checks raise BEFORE any store write (check-then-write), so a
raised error never leaves a half-applied operation behind.
"""

from decimal import Decimal


class CashKernelError(Exception):
    """
    Base exception for all cash kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CASH_KERNEL_ERROR"


class ValidationError(CashKernelError):
    """Input is missing a required field or is otherwise unusable."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InsufficientBalanceError(CashKernelError):
    """An operation would drive a safe balance below zero."""

    code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, safe: str, requested: Decimal, available: Decimal):
        self.safe = safe
        self.requested = str(requested)
        self.available = str(available)
        super().__init__(
            f"Insufficient {safe} safe balance: requested {requested}, "
            f"available {available}"
        )


# Not-found exceptions


class NotFoundError(CashKernelError):
    """Base exception for operations targeting a non-existent record."""

    code: str = "NOT_FOUND"


class EntryNotFoundError(NotFoundError):
    """Daily entry with given ID was not found."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}")


class WithdrawalNotFoundError(NotFoundError):
    """Back-safe withdrawal with given ID was not found."""

    code: str = "WITHDRAWAL_NOT_FOUND"

    def __init__(self, withdrawal_id: str):
        self.withdrawal_id = withdrawal_id
        super().__init__(f"Withdrawal not found: {withdrawal_id}")


class ArchiveNotFoundError(NotFoundError):
    """No monthly archive exists for the given month."""

    code: str = "ARCHIVE_NOT_FOUND"

    def __init__(self, month: str):
        self.month = month
        super().__init__(f"No archive for month {month}")


class ClosedMonthError(CashKernelError):
    """
    Ledger change dated inside a closed month.

    Only raised when ``ledger.lock_closed_months`` is enabled.
    """

    code: str = "CLOSED_MONTH"

    def __init__(self, month: str, record_date: str):
        self.month = month
        self.record_date = record_date
        super().__init__(
            f"Month {month} is closed; cannot change ledger for {record_date}"
        )


class BalanceDriftError(CashKernelError):
    """The balance snapshot no longer matches the ledger reconstruction."""

    code: str = "BALANCE_DRIFT"

    def __init__(self, safe: str, snapshot: Decimal, reconstructed: Decimal):
        self.safe = safe
        self.snapshot = str(snapshot)
        self.reconstructed = str(reconstructed)
        super().__init__(
            f"{safe} safe drift: snapshot={snapshot}, ledger={reconstructed}"
        )


class ConfigurationError(CashKernelError):
    """Configuration file content is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
