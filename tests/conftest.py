"""
Pytest fixtures for the stock ledger test suite.

Provides:
- Structured logging configuration and a ``captured_logs`` helper
- A deterministic clock
- A fresh database per test (in-memory SQLite by default)
- ``stock_data``: a builder that writes master data and log rows
- ``file_db``: a SQLite file database for multi-session tests
- ``make_tx``: a factory for StockTransaction DTOs in pure engine tests

Environment Variables:
- DATABASE_URL: database URL for DB-backed tests.  Defaults to in-memory
  SQLite; set a PostgreSQL URL to run the same tests against PostgreSQL.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest

from stock_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from stock_kernel.domain.clock import DeterministicClock
from stock_kernel.domain.dtos import Batch, Product, StockTransaction
from stock_kernel.domain.reference_snapshot import ReferenceSnapshot
from stock_kernel.domain.values import Location
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from stock_kernel.models.batch import ProductBatchModel
from stock_kernel.models.product import ProductCategoryModel, ProductModel
from stock_kernel.models.stock_transaction import StockTransactionModel

# "Today" for every clock-dependent test
TODAY = date(2024, 6, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.run_query()
            logs = captured_logs()
            assert any(r["message"] == "stock_positions_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Database
# =============================================================================

DEFAULT_DATABASE_URL = "sqlite://"


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture
def db_engine():
    """A freshly created schema for one test."""
    engine = init_engine_from_url(get_database_url())
    drop_tables()
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine):
    session = get_session()
    yield session
    session.rollback()
    session.close()


class StockDataBuilder:
    """Writes categories, products, batches and log rows for a test."""

    def __init__(self, session):
        self.session = session
        self._next_seq = 1
        self._categories: dict[str, ProductCategoryModel] = {}

    def category(self, name: str) -> ProductCategoryModel:
        if name not in self._categories:
            model = ProductCategoryModel(name=name)
            self.session.add(model)
            self.session.flush()
            self._categories[name] = model
        return self._categories[name]

    def product(
        self,
        name: str,
        code: str | None = None,
        generic_name: str = "",
        category: str | None = None,
        min_godown: int = 0,
        min_mr: int = 0,
    ) -> ProductModel:
        model = ProductModel(
            name=name,
            product_code=code or name.upper().replace(" ", "-"),
            generic_name=generic_name,
            category_id=self.category(category).id if category else None,
            min_stock_level_godown=min_godown,
            min_stock_level_mr=min_mr,
        )
        self.session.add(model)
        self.session.flush()
        return model

    def batch(
        self,
        product: ProductModel,
        batch_number: str,
        expiry_date: date = date(2026, 1, 1),
    ) -> ProductBatchModel:
        model = ProductBatchModel(
            product_id=product.id,
            batch_number=batch_number,
            expiry_date=expiry_date,
        )
        self.session.add(model)
        self.session.flush()
        return model

    def transaction(
        self,
        product,
        batch,
        transaction_type: str,
        quantity: int,
        unit_cost: Decimal | str = "0",
        source: tuple[str, str | None] | None = None,
        destination: tuple[str, str | None] | None = None,
        on: date = date(2024, 1, 15),
        reference_document_type: str | None = None,
        reference_document_id: str | None = None,
        notes: str | None = None,
    ) -> StockTransactionModel:
        product_id = product if isinstance(product, UUID) else product.id
        batch_id = batch if isinstance(batch, UUID) else batch.id
        model = StockTransactionModel(
            seq=self._next_seq,
            transaction_group_id=uuid4(),
            transaction_type=transaction_type,
            transaction_date=on,
            product_id=product_id,
            batch_id=batch_id,
            quantity_strips=quantity,
            location_type_source=source[0] if source else None,
            location_id_source=source[1] if source else None,
            location_type_destination=destination[0] if destination else None,
            location_id_destination=destination[1] if destination else None,
            cost_per_strip_at_transaction=Decimal(unit_cost),
            reference_document_type=reference_document_type,
            reference_document_id=reference_document_id,
            notes=notes,
        )
        self._next_seq += 1
        self.session.add(model)
        self.session.flush()
        return model

    def stock_in(self, product, batch, quantity: int, unit_cost="5.00", **kw):
        return self.transaction(
            product, batch, "STOCK_IN_GODOWN", quantity, unit_cost,
            source=("SUPPLIER", None), destination=("GODOWN", None), **kw,
        )

    def dispatch(self, product, batch, quantity: int, mr_id: str, unit_cost="5.00", **kw):
        return self.transaction(
            product, batch, "DISPATCH_TO_MR", quantity, unit_cost,
            source=("GODOWN", None), destination=("MR", mr_id), **kw,
        )


@pytest.fixture
def stock_data(session) -> StockDataBuilder:
    return StockDataBuilder(session)


@pytest.fixture
def file_db(tmp_path):
    """
    A SQLite database file shared by several sessions or threads.

    Yields the URL.  Seed it with ``StockDataBuilder`` on a session from
    ``get_session()`` and commit before querying from other sessions.
    """
    url = f"sqlite:///{tmp_path / 'stock_ledger.db'}"
    init_engine_from_url(url)
    create_tables()
    yield url
    drop_tables()
    reset_engine()


@pytest.fixture
def stock_data_builder():
    """The builder class, for tests that manage their own sessions."""
    return StockDataBuilder


# =============================================================================
# Pure DTO factories
# =============================================================================


@pytest.fixture
def make_tx():
    """
    Factory for StockTransaction DTOs with auto-incrementing seq.

    Usage::

        tx = make_tx("STOCK_IN_GODOWN", 100, "5.00", destination=Location.godown())
    """
    counter = {"seq": 0}
    product_id = uuid4()
    batch_id = uuid4()

    def _make(
        transaction_type: str,
        quantity: int,
        unit_cost: str | Decimal = "0",
        source: Location | None = None,
        destination: Location | None = None,
        product_id: UUID = product_id,
        batch_id: UUID = batch_id,
    ) -> StockTransaction:
        counter["seq"] += 1
        return StockTransaction(
            seq=counter["seq"],
            product_id=product_id,
            batch_id=batch_id,
            transaction_type=transaction_type,
            quantity=quantity,
            unit_cost=Decimal(unit_cost),
            occurred_at=date(2024, 1, 15),
            source=source,
            destination=destination,
        )

    _make.product_id = product_id
    _make.batch_id = batch_id
    return _make


@pytest.fixture
def make_snapshot():
    """Build a ReferenceSnapshot holding one product and batch per call."""

    def _make(
        product_id: UUID,
        batch_id: UUID,
        name: str = "Amoxicillin 500",
        code: str = "AMX500",
        category: str | None = "Antibiotics",
        batch_number: str = "B-001",
        expiry_date: date = date(2026, 1, 1),
        min_godown: int = 0,
        min_mr: int = 0,
    ) -> ReferenceSnapshot:
        product = Product(
            id=product_id,
            name=name,
            code=code,
            generic_name="Amoxicillin",
            category=category,
            min_stock_level_godown=min_godown,
            min_stock_level_mr=min_mr,
        )
        batch = Batch(
            id=batch_id,
            product_id=product_id,
            batch_number=batch_number,
            expiry_date=expiry_date,
        )
        return ReferenceSnapshot.build([product], [batch])

    return _make
