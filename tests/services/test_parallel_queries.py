"""
Tests for running independent stock queries concurrently.

Each query opens its own session on a shared SQLite file; the results
must equal the same queries run one after another.
"""

from datetime import date

import pytest

from stock_kernel.db.engine import get_session, get_session_factory
from stock_kernel.domain.dtos import QueryOutcome, StockFilters
from stock_kernel.domain.values import LocationFilter
from stock_services.parallel import compute_positions_concurrently
from stock_services.stock_ledger_service import StockLedgerService


@pytest.fixture
def seeded_db(file_db, stock_data_builder):
    session = get_session()
    data = stock_data_builder(session)
    amox = data.product("Amoxicillin 500", "AMX500", category="Antibiotics")
    dolo = data.product("Dolo 650", "PCM650", category="Analgesics")
    amox_b = data.batch(amox, "AX-1", date(2025, 6, 30))
    dolo_b = data.batch(dolo, "DL-1", date(2026, 1, 31))
    data.stock_in(amox, amox_b, 100)
    data.stock_in(dolo, dolo_b, 80)
    for mr_id in ("1", "2", "3"):
        data.dispatch(amox, amox_b, 10, mr_id=mr_id)
        data.dispatch(dolo, dolo_b, 5, mr_id=mr_id)
    session.commit()
    session.close()
    return file_db


QUERIES = [
    StockFilters(),
    StockFilters(location=LocationFilter.godown()),
    StockFilters(location=LocationFilter.any_mr()),
    StockFilters(location=LocationFilter.mr("2")),
    StockFilters(category="Analgesics"),
    StockFilters(product_text="no such product"),
]


class TestComputePositionsConcurrently:
    def test_matches_sequential_results(self, seeded_db, deterministic_clock):
        sequential = []
        for filters in QUERIES:
            session = get_session()
            try:
                sequential.append(
                    StockLedgerService(session, deterministic_clock).run_query(filters)
                )
            finally:
                session.close()

        concurrent = compute_positions_concurrently(
            get_session_factory(), QUERIES, clock=deterministic_clock, max_workers=4,
        )

        assert [r.positions for r in concurrent] == [r.positions for r in sequential]

    def test_results_in_query_order(self, seeded_db):
        results = compute_positions_concurrently(get_session_factory(), QUERIES)
        assert len(results[0].positions) == 8
        assert len(results[1].positions) == 2
        assert len(results[2].positions) == 6
        assert {v.location_id for v in results[3].positions} == {"2"}
        assert {v.product_name for v in results[4].positions} == {"Dolo 650"}
        assert results[5].outcome is QueryOutcome.FILTERED_OUT

    def test_each_query_gets_its_own_session(self, seeded_db):
        opened = []
        factory = get_session_factory()

        def tracking_factory():
            session = factory()
            opened.append(session)
            return session

        compute_positions_concurrently(tracking_factory, QUERIES[:3], max_workers=3)

        assert len(opened) == 3
        assert len({id(s) for s in opened}) == 3

    def test_invalid_worker_count(self, seeded_db):
        with pytest.raises(ValueError):
            compute_positions_concurrently(get_session_factory(), QUERIES, max_workers=0)

    def test_completion_logged(self, seeded_db, captured_logs):
        compute_positions_concurrently(get_session_factory(), QUERIES[:2], max_workers=2)
        (event,) = [
            r for r in captured_logs() if r["message"] == "concurrent_stock_queries_completed"
        ]
        assert event["query_count"] == 2
