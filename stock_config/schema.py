"""
LedgerConfig schema.

The typed, frozen form of a stock ledger configuration set.  YAML is parsed
into this dataclass by the loader; services only ever see the dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class LedgerConfig:
    """Tunable thresholds and listing defaults."""

    config_id: str = "default"
    version: int = 1
    expiring_soon_days: int = 30
    medium_stock_multiplier: Decimal = Decimal("1.5")
    default_sort_field: str = "product_name"
    default_sort_direction: str = "asc"
    default_page_size: int = 50
    max_page_size: int = 500
    checksum: str = ""
