"""
stock_config -- single public entrypoint for stock ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.

Architecture position:
    Configuration -- sits above ``stock_kernel`` and ``stock_engines`` and
    below ``stock_services``.  The kernel never imports from here; services
    pass the relevant values into the engines.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``InvalidConfigError`` -- a value is missing or out of range.

Every successful ``get_active_config()`` call emits a
``STOCK_CONFIG_TRACE`` log entry with the config id, version and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from stock_config.loader import load_ledger_config
from stock_config.schema import LedgerConfig

_logger = logging.getLogger("stock_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a configuration YAML file.
            Defaults to stock_config/sets/default.yaml.

    Returns:
        A frozen, validated LedgerConfig.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = load_ledger_config(path)

    _logger.info(
        "STOCK_CONFIG_TRACE",
        extra={
            "trace_type": "STOCK_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "expiring_soon_days": config.expiring_soon_days,
            "medium_stock_multiplier": config.medium_stock_multiplier,
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_PATH", "LedgerConfig", "get_active_config"]
