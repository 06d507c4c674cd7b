"""
Kernel settings.

The values the services need at runtime.  The kernel never reads
configuration files; ``cash_config.bridges.build_kernel_settings`` turns a
loaded configuration into one of these.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from cash_kernel.domain.balance_calculator import BALANCE_TOLERANCE


class EndingBalanceSource(str, Enum):
    """Where ``close_month`` takes the archive's ending balances from."""

    # Live snapshot at close time.
    SNAPSHOT = "snapshot"
    # Starting balances plus the month's own entries and withdrawals.
    LEDGER = "ledger"


@dataclass(frozen=True)
class KernelSettings:
    balance_tolerance: Decimal = BALANCE_TOLERANCE
    ending_balance_source: EndingBalanceSource = EndingBalanceSource.SNAPSHOT
    lock_closed_months: bool = False
