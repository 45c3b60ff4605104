"""
Pure domain layer.

This module contains pure data transfer objects and value types
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.  Time enters only
through an injected Clock.
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.dtos import (
    Batch,
    Effect,
    ExpiryStatus,
    LedgerDiagnostics,
    MovementPage,
    PositionKey,
    PositionStatus,
    Product,
    QueryOutcome,
    StockFilters,
    StockMovement,
    StockPosition,
    StockPositionView,
    StockQueryResult,
    StockReport,
    StockReportRow,
    StockStatus,
    StockSummary,
    StockTransaction,
)
from stock_kernel.domain.reference_snapshot import (
    ReferenceSnapshot,
    ResolvedTransaction,
)
from stock_kernel.domain.values import (
    Location,
    LocationFilter,
    LocationScope,
    LocationType,
    MovementCategory,
    TransactionKind,
    TransactionType,
    parse_transaction_type,
)

__all__ = [
    "Batch",
    "Clock",
    "DeterministicClock",
    "Effect",
    "ExpiryStatus",
    "LedgerDiagnostics",
    "Location",
    "LocationFilter",
    "LocationScope",
    "LocationType",
    "MovementCategory",
    "MovementPage",
    "PositionKey",
    "PositionStatus",
    "Product",
    "QueryOutcome",
    "ReferenceSnapshot",
    "ResolvedTransaction",
    "StockFilters",
    "StockMovement",
    "StockPosition",
    "StockPositionView",
    "StockQueryResult",
    "StockReport",
    "StockReportRow",
    "StockStatus",
    "StockSummary",
    "StockTransaction",
    "SystemClock",
    "TransactionKind",
    "TransactionType",
    "parse_transaction_type",
]
