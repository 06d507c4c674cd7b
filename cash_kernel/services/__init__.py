"""Services for the cash kernel (write side)."""

from cash_kernel.services.archive_service import MonthArchiveService
from cash_kernel.services.balance_service import SafeBalanceService
from cash_kernel.services.reconciliation_service import ReconciliationService

__all__ = [
    "MonthArchiveService",
    "ReconciliationService",
    "SafeBalanceService",
]
