"""
Configuration Loader (``cash_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen
``cash_config.schema`` dataclasses.  Callers should go through
``cash_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Missing sections and keys fall back to the schema defaults.
* Present but invalid values raise ``ConfigurationError`` naming the
  dotted key; nothing invalid is silently replaced by a default.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  content, so two files that differ only in comments or key order share a
  checksum.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Non-mapping document or section, bad tolerance, unknown ending source,
  unknown log level  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from cash_config.schema import (
    ArchiveConfig,
    CashReconConfig,
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
    ReconciliationConfig,
)
from cash_kernel.exceptions import ConfigurationError

ENDING_BALANCE_SOURCES = ("snapshot", "ledger")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(name, "must be a mapping")
    return value


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigurationError(key, f"expected true/false, got {value!r}")


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url.strip():
        raise ConfigurationError("database.url", "must be a non-empty string")
    return DatabaseConfig(
        url=url.strip(),
        echo=_parse_bool(data.get("echo", defaults.echo), "database.echo"),
    )


def parse_reconciliation(data: dict[str, Any]) -> ReconciliationConfig:
    raw = data.get("balance_tolerance", ReconciliationConfig().balance_tolerance)
    try:
        # str() first so YAML floats like 0.01 stay exact
        tolerance = Decimal(str(raw))
    except InvalidOperation:
        raise ConfigurationError(
            "reconciliation.balance_tolerance", f"not a number: {raw!r}"
        ) from None
    if not tolerance.is_finite() or tolerance <= 0:
        raise ConfigurationError(
            "reconciliation.balance_tolerance", "must be greater than zero"
        )
    return ReconciliationConfig(balance_tolerance=tolerance)


def parse_archive(data: dict[str, Any]) -> ArchiveConfig:
    source = str(data.get("ending_balance_source", ArchiveConfig().ending_balance_source))
    source = source.strip().lower()
    if source not in ENDING_BALANCE_SOURCES:
        raise ConfigurationError(
            "archive.ending_balance_source",
            f"expected one of {', '.join(ENDING_BALANCE_SOURCES)}, got {source!r}",
        )
    return ArchiveConfig(ending_balance_source=source)


def parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    return LedgerConfig(
        lock_closed_months=_parse_bool(
            data.get("lock_closed_months", LedgerConfig().lock_closed_months),
            "ledger.lock_closed_months",
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", LoggingConfig().level)).strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError("logging.level", f"unknown level {level!r}")
    return LoggingConfig(level=level)


def parse_config(data: dict[str, Any], source: str | None = None) -> CashReconConfig:
    """
    Parse a configuration mapping into a ``CashReconConfig``.

    Postconditions:
        - ``checksum`` is the SHA-256 of the parsed (not raw) content.
    """
    parsed = CashReconConfig(
        database=parse_database(_section(data, "database")),
        reconciliation=parse_reconciliation(_section(data, "reconciliation")),
        archive=parse_archive(_section(data, "archive")),
        ledger=parse_ledger(_section(data, "ledger")),
        logging=parse_logging(_section(data, "logging")),
        source=source,
    )
    return replace(parsed, checksum=compute_checksum(_canonical(parsed)))


def _canonical(config: CashReconConfig) -> dict[str, Any]:
    return {
        "database": {"url": config.database.url, "echo": config.database.echo},
        "reconciliation": {
            "balance_tolerance": str(config.reconciliation.balance_tolerance),
        },
        "archive": {"ending_balance_source": config.archive.ending_balance_source},
        "ledger": {"lock_closed_months": config.ledger.lock_closed_months},
        "logging": {"level": config.logging.level},
    }


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def log_level(config: CashReconConfig) -> int:
    """Numeric ``logging`` level for ``configure_logging``."""
    return logging.getLevelName(config.logging.level)
