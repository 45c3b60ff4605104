"""
Concurrent stock queries (``stock_services.parallel``).

Independent stock queries share no mutable state, so they can run side by
side.  Each query gets its own session from the factory; sessions are
never shared across threads.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy.orm import Session

from stock_config.schema import LedgerConfig
from stock_kernel.domain.clock import Clock
from stock_kernel.domain.dtos import StockFilters, StockQueryResult
from stock_kernel.logging_config import get_logger
from stock_services.stock_ledger_service import StockLedgerService

logger = get_logger("services.parallel")


def compute_positions_concurrently(
    session_factory: Callable[[], Session],
    queries: Sequence[StockFilters],
    clock: Clock | None = None,
    config: LedgerConfig | None = None,
    max_workers: int = 4,
) -> list[StockQueryResult]:
    """
    Run one stock query per filter set on a thread pool.

    Results come back in the order of ``queries``.  The first query that
    raises re-raises here once all submitted queries have finished.
    """
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")

    def run_one(filters: StockFilters) -> StockQueryResult:
        session = session_factory()
        try:
            return StockLedgerService(session, clock, config).run_query(filters)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(run_one, filters) for filters in queries]
        results = [f.result() for f in futures]

    logger.info(
        "concurrent_stock_queries_completed",
        extra={"query_count": len(queries), "max_workers": max_workers},
    )
    return results
