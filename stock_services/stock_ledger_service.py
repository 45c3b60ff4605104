"""
Stock Ledger Service (``stock_services.stock_ledger_service``).

Responsibility
--------------
Answers "what stock is where, and what is it worth" by bridging the
selectors (``ReferenceSelector``, ``TransactionSelector``) to the pure
engines (filters, replay, status, listing).  This is a **read-only**
service: it never writes the log or master data.

Architecture position
---------------------
**Services layer**.  Constructor: ``session`` + ``clock`` + ``config``.
The caller owns the session; the reference read and the log read of one
query run on it back to back.

Query pipeline
--------------
1. Load the reference snapshot (products, batches).
2. Resolve descriptive filters to candidate id sets.  If nothing matches,
   return ``FILTERED_OUT`` without reading the log.
3. Read the candidate log rows in seq order.
4. Replay: classify, fold (location filter applied per effect), join.
5. (stock_report only) Derive statuses, summarize the full set, sort,
   paginate.

Failure modes
-------------
* ``ReferenceDataUnavailableError`` / ``TransactionLogUnavailableError``
  propagate: no partial result is returned.
* ``InvalidSortFieldError`` / ``InvalidPageRequestError`` are raised
  before any I/O.
"""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy.orm import Session

from stock_config.schema import LedgerConfig
from stock_engines.filters import resolve_candidate_ids
from stock_engines.listing import (
    SortDirection,
    SortField,
    paginate,
    sort_views,
    validate_page_request,
)
from stock_engines.replay import replay_ledger
from stock_engines.status import StatusDeriver
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import (
    LedgerDiagnostics,
    QueryOutcome,
    StockFilters,
    StockPositionView,
    StockQueryResult,
    StockReport,
    StockReportRow,
    StockSummary,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.selectors.reference_selector import ReferenceSelector
from stock_kernel.selectors.transaction_selector import TransactionSelector

logger = get_logger("services.stock_ledger")


class StockLedgerService:
    """
    Stock position, summary and report queries.

    Guarantees
    ----------
    * Every query is a pure function of (log, master data) at read time.
      No state is kept between queries.
    * Row statuses and summary counts share one ``StatusDeriver``.
    * Clock is injectable; "today" for expiry status comes from it.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or LedgerConfig()
        self._references = ReferenceSelector(session)
        self._transactions = TransactionSelector(session)
        self._status = StatusDeriver(
            expiring_soon_days=self._config.expiring_soon_days,
            medium_stock_multiplier=self._config.medium_stock_multiplier,
        )

    @property
    def status_deriver(self) -> StatusDeriver:
        return self._status

    def run_query(self, filters: StockFilters | None = None) -> StockQueryResult:
        """
        Compute stock positions for ``filters`` with outcome and diagnostics.

        Raises:
            ReferenceDataUnavailableError: Master data could not be read.
            TransactionLogUnavailableError: The log could not be read.
        """
        filters = filters or StockFilters()
        with LogContext.bind(query_id=str(uuid4())):
            snapshot = self._references.load_snapshot()
            selection = resolve_candidate_ids(snapshot, filters)

            if selection.is_empty:
                logger.info(
                    "stock_query_filtered_out",
                    extra={
                        "location_filter": str(filters.location),
                        "product_text": filters.product_text,
                        "batch_text": filters.batch_text,
                        "category": filters.category,
                        "expiry_from": filters.expiry_from,
                        "expiry_to": filters.expiry_to,
                    },
                )
                return StockQueryResult(
                    positions=(),
                    outcome=QueryOutcome.FILTERED_OUT,
                    diagnostics=LedgerDiagnostics(),
                )

            transactions = self._transactions.read_transactions(
                product_ids=selection.product_ids,
                batch_ids=selection.batch_ids,
            )
            result = replay_ledger(
                transactions=transactions,
                snapshot=snapshot,
                location_filter=filters.location,
            )

            diagnostics = result.diagnostics
            logger.info(
                "stock_positions_computed",
                extra={
                    "location_filter": str(filters.location),
                    "reference_filtered": not selection.is_unrestricted,
                    "position_count": len(result.views),
                    "godown_positions": sum(
                        1 for v in result.views if v.location.is_godown
                    ),
                    "mr_positions": sum(1 for v in result.views if v.location.is_mr),
                    "transactions_read": diagnostics.transactions_read,
                    "transactions_applied": diagnostics.transactions_applied,
                    "skipped_unresolved": diagnostics.skipped_unresolved,
                    "skipped_unsupported": diagnostics.skipped_unsupported,
                    "without_effect": diagnostics.without_effect,
                    "effects_applied": diagnostics.effects_applied,
                    "effects_filtered": diagnostics.effects_filtered,
                    "positions_dropped": diagnostics.positions_dropped,
                },
            )
            return StockQueryResult(
                positions=result.views,
                outcome=QueryOutcome.COMPUTED,
                diagnostics=diagnostics,
            )

    def compute_stock_positions(
        self,
        filters: StockFilters | None = None,
    ) -> list[StockPositionView]:
        """Positive stock positions matching ``filters``, in creation order."""
        return list(self.run_query(filters).positions)

    def compute_summary(self, filters: StockFilters | None = None) -> StockSummary:
        """Summary over every position matching ``filters``."""
        views = self.run_query(filters).positions
        return self._status.summarize(views=views, as_of=self._clock.today())

    def stock_report(
        self,
        filters: StockFilters | None = None,
        sort_field: SortField | str | None = None,
        sort_direction: SortDirection | str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> StockReport:
        """
        One sorted page of stock rows with statuses, plus the summary over
        the full filtered set.

        Defaults for sort and page size come from the configuration.
        """
        field = SortField.parse(sort_field or self._config.default_sort_field)
        direction = SortDirection.parse(
            sort_direction or self._config.default_sort_direction
        )
        limit = limit if limit is not None else self._config.default_page_size
        validate_page_request(offset, limit, self._config.max_page_size)

        result = self.run_query(filters)
        as_of = self._clock.today()
        summary = self._status.summarize(views=result.positions, as_of=as_of)

        ordered = sort_views(result.positions, field, direction)
        page = paginate(ordered, offset, limit, self._config.max_page_size)
        rows = tuple(
            StockReportRow(view=view, status=self._status.status_of(view, as_of))
            for view in page.items
        )

        logger.info(
            "stock_report_generated",
            extra={
                "as_of": as_of,
                "sort_field": field.value,
                "sort_direction": direction.value,
                "offset": offset,
                "limit": limit,
                "total_count": page.total_count,
                "row_count": len(rows),
                "outcome": result.outcome.value,
            },
        )
        return StockReport(
            rows=rows,
            total_count=page.total_count,
            offset=offset,
            limit=limit,
            summary=summary,
            outcome=result.outcome,
            as_of=as_of,
        )
