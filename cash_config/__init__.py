"""
cash_config -- single public entrypoint for CashRecon configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.

Architecture position:
    Configuration -- sits above ``cash_kernel``.  The kernel MUST NEVER
    import from ``cash_config``; ``cash_config.bridges`` translates the
    loaded configuration into kernel inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Deterministic checksum: the same parsed content always produces the
      same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` -- a value fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``cash_config_loaded`` log entry with the source path and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cash_config.loader import load_yaml_file, parse_config
from cash_config.schema import CashReconConfig

_logger = logging.getLogger("cash_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> CashReconConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            ``cash_config/sets/default.yaml``.

    Returns:
        A frozen, validated ``CashReconConfig``.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(path), source=str(path))
    _logger.info(
        "cash_config_loaded",
        extra={
            "source": config.source,
            "checksum": config.checksum,
            "ending_balance_source": config.archive.ending_balance_source,
            "lock_closed_months": config.ledger.lock_closed_months,
        },
    )
    return config


__all__ = ["CashReconConfig", "DEFAULT_CONFIG_PATH", "get_active_config"]
