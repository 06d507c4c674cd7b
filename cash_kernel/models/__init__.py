"""ORM models.  Importing this package registers every table on Base.metadata."""

from cash_kernel.models.ledger_record import LedgerRecord

__all__ = ["LedgerRecord"]
