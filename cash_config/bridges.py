"""
Config -> Kernel Bridges.

Functions that convert a loaded ``CashReconConfig`` into kernel inputs.
These live in cash_config (the producer) because the kernel must NEVER
import cash_config.

Usage:
    from cash_config.bridges import build_kernel_settings

    config = get_active_config()
    settings = build_kernel_settings(config)
    service = ReconciliationService(store, settings=settings)
"""

from __future__ import annotations

from cash_config.schema import CashReconConfig
from cash_kernel.domain.settings import EndingBalanceSource, KernelSettings


def build_kernel_settings(config: CashReconConfig) -> KernelSettings:
    return KernelSettings(
        balance_tolerance=config.reconciliation.balance_tolerance,
        ending_balance_source=EndingBalanceSource(config.archive.ending_balance_source),
        lock_closed_months=config.ledger.lock_closed_months,
    )
