"""Read-only selectors."""

from cash_kernel.selectors.ledger_selector import LedgerSelector

__all__ = ["LedgerSelector"]
