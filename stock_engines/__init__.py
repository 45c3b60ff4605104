"""
Module: stock_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure stock
    calculation engines.  This is the canonical import surface for the
    service layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain, stock_kernel.exceptions and
    stock_kernel.logging_config.  MUST NOT import stock_services.

Invariants enforced:
    - Purity: engines never read the clock.  "Today" is passed in.
    - Decimal-only arithmetic for costs and values.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from stock_engines import TransactionClassifier, replay_ledger
    from stock_engines import StatusDeriver, sort_views, paginate
"""

from stock_engines.aggregator import AggregationResult, StockPositionAggregator
from stock_engines.classifier import TransactionClassifier
from stock_engines.filters import CandidateSelection, resolve_candidate_ids
from stock_engines.listing import (
    Page,
    SortDirection,
    SortField,
    paginate,
    sort_views,
    validate_page_request,
)
from stock_engines.replay import ReplayResult, replay_ledger
from stock_engines.status import StatusDeriver
from stock_engines.tracer import traced_engine

__all__ = [
    "AggregationResult",
    "CandidateSelection",
    "Page",
    "ReplayResult",
    "SortDirection",
    "SortField",
    "StatusDeriver",
    "StockPositionAggregator",
    "TransactionClassifier",
    "paginate",
    "replay_ledger",
    "resolve_candidate_ids",
    "sort_views",
    "traced_engine",
    "validate_page_request",
]
