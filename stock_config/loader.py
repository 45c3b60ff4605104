"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into a frozen
``LedgerConfig``.  Runtime callers use ``stock_config.get_active_config()``
rather than this module.

Invariants enforced
-------------------
* Every value is validated; a bad value raises ``InvalidConfigError``
  naming the offending key.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  YAML for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import LedgerConfig
from stock_engines.listing import SortDirection, SortField
from stock_kernel.exceptions import InvalidConfigError, QueryError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise InvalidConfigError(name, "must be a mapping")
    return value


def _int(section: dict[str, Any], key: str, default: int, minimum: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigError(key, f"must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidConfigError(key, f"must be >= {minimum}, got {value}")
    return value


def _decimal(section: dict[str, Any], key: str, default: Decimal) -> Decimal:
    raw = section.get(key, default)
    if isinstance(raw, bool):
        raise InvalidConfigError(key, f"must be a number, got {raw!r}")
    try:
        # str() first so YAML floats keep their written digits.
        value = Decimal(str(raw))
    except InvalidOperation:
        raise InvalidConfigError(key, f"must be a number, got {raw!r}") from None
    if not value.is_finite():
        raise InvalidConfigError(key, f"must be a finite number, got {raw!r}")
    return value


def parse_ledger_config(data: dict[str, Any]) -> LedgerConfig:
    """
    Parse a configuration mapping into a LedgerConfig.

    Missing keys take the LedgerConfig defaults.

    Raises:
        InvalidConfigError: On any invalid value.
    """
    defaults = LedgerConfig()
    status = _section(data, "status")
    expiry = _section(data, "expiry")
    listing = _section(data, "listing")

    multiplier = _decimal(
        status, "medium_stock_multiplier", defaults.medium_stock_multiplier
    )
    if multiplier < 1:
        raise InvalidConfigError(
            "medium_stock_multiplier", f"must be >= 1, got {multiplier}"
        )

    expiring_soon_days = _int(
        expiry, "expiring_soon_days", defaults.expiring_soon_days, 0
    )

    default_page_size = _int(
        listing, "default_page_size", defaults.default_page_size, 1
    )
    max_page_size = _int(listing, "max_page_size", defaults.max_page_size, 1)
    if default_page_size > max_page_size:
        raise InvalidConfigError(
            "default_page_size",
            f"{default_page_size} exceeds max_page_size {max_page_size}",
        )

    sort_field = listing.get("default_sort_field", defaults.default_sort_field)
    sort_direction = listing.get(
        "default_sort_direction", defaults.default_sort_direction
    )
    try:
        sort_field = SortField.parse(sort_field).value
        sort_direction = SortDirection.parse(sort_direction).value
    except QueryError as exc:
        raise InvalidConfigError("listing", exc.reason) from exc

    version = data.get("version", defaults.version)
    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidConfigError("version", f"must be an integer, got {version!r}")

    return LedgerConfig(
        config_id=str(data.get("config_id", defaults.config_id)),
        version=version,
        expiring_soon_days=expiring_soon_days,
        medium_stock_multiplier=multiplier,
        default_sort_field=sort_field,
        default_sort_direction=sort_direction,
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        checksum=compute_checksum(data),
    )


def load_ledger_config(path: Path) -> LedgerConfig:
    """Load and parse the configuration set at ``path``."""
    return parse_ledger_config(load_yaml_file(path))
