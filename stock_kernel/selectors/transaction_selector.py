"""
Module: stock_kernel.selectors.transaction_selector
Responsibility: Read-only access to the stock transaction log: the ordered
    replay read used by the stock engine and the paginated movement history.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Replay reads are ordered by seq ascending, so every replay of the same
      log folds the same sequence.
    - Quantities leave this module unsigned.  A negative stored value is
      normalized with abs() and a ``log_quantity_normalized`` event is logged.
    - Location columns are parsed into Location values here and nowhere else.

Failure modes:
    - TransactionLogUnavailableError when the log cannot be read.
"""

from collections.abc import Collection
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import MovementPage, StockMovement, StockTransaction
from stock_kernel.domain.values import Location
from stock_kernel.exceptions import InvalidPageRequestError, TransactionLogUnavailableError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.batch import ProductBatchModel
from stock_kernel.models.product import ProductModel
from stock_kernel.models.stock_transaction import StockTransactionModel
from stock_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.transaction")


class TransactionSelector(BaseSelector[StockTransactionModel]):
    """
    Selector for the stock transaction log.

    Guarantees:
        - read_transactions() returns StockTransaction DTOs in seq order.
        - list_movements() returns newest-first pages with a total count.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def read_transactions(
        self,
        product_ids: Collection[UUID] | None = None,
        batch_ids: Collection[UUID] | None = None,
    ) -> list[StockTransaction]:
        """
        Read the log for replay.

        Args:
            product_ids: Restrict to these products (None means all).
            batch_ids: Restrict to these batches (None means all).

        Returns:
            StockTransaction DTOs ordered by seq ascending.

        Raises:
            TransactionLogUnavailableError: If the log cannot be read.
        """
        stmt = select(StockTransactionModel).order_by(StockTransactionModel.seq)
        if product_ids is not None:
            stmt = stmt.where(StockTransactionModel.product_id.in_(list(product_ids)))
        if batch_ids is not None:
            stmt = stmt.where(StockTransactionModel.batch_id.in_(list(batch_ids)))

        try:
            models = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            logger.error("transaction_log_read_failed", exc_info=True)
            raise TransactionLogUnavailableError(str(exc)) from exc

        transactions = [self._to_dto(model) for model in models]
        logger.debug(
            "transaction_log_read",
            extra={
                "row_count": len(transactions),
                "product_scope": None if product_ids is None else len(product_ids),
                "batch_scope": None if batch_ids is None else len(batch_ids),
            },
        )
        return transactions

    def list_movements(
        self,
        search: str | None = None,
        transaction_type: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> MovementPage:
        """
        Newest-first page of log rows joined with product and batch labels.

        Args:
            search: Case-insensitive substring over reference document id,
                product name, product code and batch number.
            transaction_type: Exact transaction type to keep.
            offset: Rows to skip.
            limit: Page size.

        Raises:
            InvalidPageRequestError: On a negative offset or non-positive limit.
            TransactionLogUnavailableError: If the log cannot be read.
        """
        if offset < 0:
            raise InvalidPageRequestError(offset, limit, "offset must be >= 0")
        if limit <= 0:
            raise InvalidPageRequestError(offset, limit, "limit must be > 0")

        base = (
            select(
                StockTransactionModel,
                ProductModel.name,
                ProductModel.product_code,
                ProductBatchModel.batch_number,
            )
            .outerjoin(ProductModel, ProductModel.id == StockTransactionModel.product_id)
            .outerjoin(
                ProductBatchModel,
                ProductBatchModel.id == StockTransactionModel.batch_id,
            )
        )

        if transaction_type:
            base = base.where(StockTransactionModel.transaction_type == transaction_type)

        if search and search.strip():
            term = search.strip()
            base = base.where(
                or_(
                    StockTransactionModel.reference_document_id.icontains(
                        term, autoescape=True
                    ),
                    ProductModel.name.icontains(term, autoescape=True),
                    ProductModel.product_code.icontains(term, autoescape=True),
                    ProductBatchModel.batch_number.icontains(term, autoescape=True),
                )
            )

        count_stmt = select(func.count()).select_from(base.subquery())
        page_stmt = (
            base.order_by(StockTransactionModel.seq.desc())
            .offset(offset)
            .limit(limit)
        )

        try:
            total = self.session.execute(count_stmt).scalar_one()
            rows = self.session.execute(page_stmt).all()
        except SQLAlchemyError as exc:
            logger.error("transaction_log_read_failed", exc_info=True)
            raise TransactionLogUnavailableError(str(exc)) from exc

        movements = tuple(
            StockMovement(
                transaction_id=model.id,
                seq=model.seq,
                occurred_at=model.transaction_date,
                transaction_type=model.transaction_type,
                product_id=model.product_id,
                product_name=product_name,
                product_code=product_code,
                batch_id=model.batch_id,
                batch_number=batch_number,
                quantity=abs(model.quantity_strips),
                unit_cost=model.cost_per_strip_at_transaction,
                source=Location.from_log(
                    model.location_type_source, model.location_id_source
                ),
                destination=Location.from_log(
                    model.location_type_destination, model.location_id_destination
                ),
                transaction_group_id=model.transaction_group_id,
                reference_document_type=model.reference_document_type,
                reference_document_id=model.reference_document_id,
                notes=model.notes,
                created_at=model.created_at,
            )
            for model, product_name, product_code, batch_number in rows
        )
        return MovementPage(
            movements=movements,
            total_count=total,
            offset=offset,
            limit=limit,
        )

    def _to_dto(self, model: StockTransactionModel) -> StockTransaction:
        quantity = model.quantity_strips
        if quantity < 0:
            logger.info(
                "log_quantity_normalized",
                extra={
                    "seq": model.seq,
                    "transaction_type": model.transaction_type,
                    "stored_quantity": quantity,
                },
            )
            quantity = abs(quantity)

        return StockTransaction(
            seq=model.seq,
            product_id=model.product_id,
            batch_id=model.batch_id,
            transaction_type=model.transaction_type,
            quantity=quantity,
            unit_cost=abs(model.cost_per_strip_at_transaction or Decimal("0")),
            occurred_at=model.transaction_date,
            source=Location.from_log(
                model.location_type_source, model.location_id_source
            ),
            destination=Location.from_log(
                model.location_type_destination, model.location_id_destination
            ),
            transaction_id=model.id,
            transaction_group_id=model.transaction_group_id,
            reference_document_type=model.reference_document_type,
            reference_document_id=model.reference_document_id,
            notes=model.notes,
        )
