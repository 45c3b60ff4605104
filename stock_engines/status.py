"""
Module: stock_engines.status
Responsibility:
    Derive per-row stock and expiry statuses, and aggregate summary
    figures over a full filtered result set.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    "Today" is always passed in as ``as_of``; this module never reads a
    clock.

Rules:
    Stock status (min = GODOWN or MR threshold by location):
        low     quantity <= min
        medium  quantity <= min * medium_multiplier
        good    otherwise
    Expiry status:
        expired        expiry_date <  as_of
        expiring-soon  expiry_date <= as_of + expiring_soon_days
        good           otherwise

Invariants enforced:
    - Row statuses and summary counts use the same rules, so the number of
      rows shown as "low" always equals low_stock_count.
    - The summary is computed over the unpaginated set.
    - Decimal-only arithmetic for values and thresholds.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal

from stock_engines.tracer import traced_engine
from stock_kernel.domain.dtos import (
    ZERO,
    ExpiryStatus,
    PositionStatus,
    StockPositionView,
    StockStatus,
    StockSummary,
)
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.status")

DEFAULT_EXPIRING_SOON_DAYS = 30
DEFAULT_MEDIUM_STOCK_MULTIPLIER = Decimal("1.5")


class StatusDeriver:
    """
    Status and summary calculator.

    Contract:
        Pure functions.  Thresholds are fixed at construction.
    """

    def __init__(
        self,
        expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
        medium_stock_multiplier: Decimal = DEFAULT_MEDIUM_STOCK_MULTIPLIER,
    ):
        if expiring_soon_days < 0:
            raise ValueError("expiring_soon_days must be >= 0")
        if medium_stock_multiplier < 1:
            raise ValueError("medium_stock_multiplier must be >= 1")
        self.expiring_soon_days = expiring_soon_days
        self.medium_stock_multiplier = medium_stock_multiplier

    def stock_status(self, quantity: int, min_level: int) -> StockStatus:
        if quantity <= min_level:
            return StockStatus.LOW
        if quantity <= min_level * self.medium_stock_multiplier:
            return StockStatus.MEDIUM
        return StockStatus.GOOD

    def expiry_status(self, expiry_date: date, as_of: date) -> ExpiryStatus:
        if expiry_date < as_of:
            return ExpiryStatus.EXPIRED
        if expiry_date <= as_of + timedelta(days=self.expiring_soon_days):
            return ExpiryStatus.EXPIRING_SOON
        return ExpiryStatus.GOOD

    def status_of(self, view: StockPositionView, as_of: date) -> PositionStatus:
        return PositionStatus(
            stock=self.stock_status(view.current_quantity, view.min_stock_level),
            expiry=self.expiry_status(view.expiry_date, as_of),
        )

    @traced_engine("status_summary", "1.0", fingerprint_fields=("as_of",))
    def summarize(
        self,
        views: Iterable[StockPositionView],
        as_of: date,
    ) -> StockSummary:
        """
        Aggregate figures over ``views``.

        Distinct products and batches are counted by id; a batch held at
        several locations counts once.
        """
        products: set = set()
        batches: set = set()
        total_value = ZERO
        low = expiring_soon = expired = 0
        godown_rows = mr_rows = 0

        for view in views:
            products.add(view.product_id)
            batches.add(view.batch_id)
            total_value += view.total_value

            status = self.status_of(view, as_of)
            if status.stock is StockStatus.LOW:
                low += 1
            if status.expiry is ExpiryStatus.EXPIRING_SOON:
                expiring_soon += 1
            elif status.expiry is ExpiryStatus.EXPIRED:
                expired += 1

            if view.location.is_godown:
                godown_rows += 1
            elif view.location.is_mr:
                mr_rows += 1

        summary = StockSummary(
            total_products=len(products),
            total_batches=len(batches),
            total_value=total_value,
            low_stock_count=low,
            expiring_soon_count=expiring_soon,
            expired_count=expired,
            godown_position_count=godown_rows,
            mr_position_count=mr_rows,
        )
        logger.debug(
            "stock_summary_computed",
            extra={
                "as_of": as_of,
                "total_products": summary.total_products,
                "total_batches": summary.total_batches,
                "total_value": summary.total_value,
                "low_stock_count": low,
                "expiring_soon_count": expiring_soon,
                "expired_count": expired,
            },
        )
        return summary
