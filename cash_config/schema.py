"""
CashReconConfig schema.

Frozen dataclasses for the YAML configuration file.  The loader parses a
YAML document into these types; ``cash_config.bridges`` converts them into
the kernel's own ``KernelSettings``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Where the SQLAlchemy record store lives."""

    url: str = "sqlite:///cashrecon.db"
    echo: bool = False


@dataclass(frozen=True)
class ReconciliationConfig:
    # Absolute tolerance for is_balanced.
    balance_tolerance: Decimal = Decimal("0.01")


@dataclass(frozen=True)
class ArchiveConfig:
    ending_balance_source: str = "snapshot"  # snapshot | ledger


@dataclass(frozen=True)
class LedgerConfig:
    lock_closed_months: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CashReconConfig:
    """The whole configuration file, parsed and validated."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    reconciliation: ReconciliationConfig = field(default_factory=ReconciliationConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: str | None = None
    checksum: str = ""
