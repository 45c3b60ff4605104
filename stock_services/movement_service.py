"""
Stock Movement Service (``stock_services.movement_service``).

Read-only history of stock transaction log rows for the movements screen:
newest first, optional free-text search and type filter, paginated.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from stock_config.schema import LedgerConfig
from stock_engines.listing import validate_page_request
from stock_kernel.domain.dtos import MovementPage
from stock_kernel.logging_config import get_logger
from stock_kernel.selectors.transaction_selector import TransactionSelector

logger = get_logger("services.movements")


class StockMovementService:
    """Paginated movement history over the transaction log."""

    def __init__(self, session: Session, config: LedgerConfig | None = None):
        self._session = session
        self._config = config or LedgerConfig()
        self._transactions = TransactionSelector(session)

    def history(
        self,
        search: str | None = None,
        transaction_type: str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> MovementPage:
        """
        Newest-first page of movements.

        ``search`` matches reference document id, product name, product
        code or batch number, case-insensitively.
        """
        limit = limit if limit is not None else self._config.default_page_size
        validate_page_request(offset, limit, self._config.max_page_size)

        page = self._transactions.list_movements(
            search=search,
            transaction_type=transaction_type,
            offset=offset,
            limit=limit,
        )
        logger.info(
            "movement_history_listed",
            extra={
                "search": search,
                "transaction_type": transaction_type,
                "offset": offset,
                "limit": limit,
                "total_count": page.total_count,
                "row_count": len(page.movements),
            },
        )
        return page
