"""
Module: stock_kernel.selectors.reference_selector
Responsibility: Bulk read of product and batch master data into a
    per-query ReferenceSnapshot.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Exactly two bulk reads per load (products with category name, batches).
    - No process-wide cache: every call reads fresh master data.

Failure modes:
    - ReferenceDataUnavailableError when either read fails.  This is fatal
      for the query: classification cannot resolve without both maps.
"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import Batch, Product
from stock_kernel.domain.reference_snapshot import ReferenceSnapshot
from stock_kernel.exceptions import ReferenceDataUnavailableError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.batch import ProductBatchModel
from stock_kernel.models.product import ProductCategoryModel, ProductModel
from stock_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.reference")


class ReferenceSelector(BaseSelector[ProductModel]):
    """Reads products and batches for one query."""

    def __init__(self, session: Session):
        super().__init__(session)

    def load_snapshot(self) -> ReferenceSnapshot:
        """
        Read all products and batches.

        Takes no filters: product, batch and category filters are resolved
        against the full snapshot by
        ``stock_engines.filters.resolve_candidate_ids`` before the log is
        read, so one snapshot serves both matching and row enrichment.

        Returns:
            ReferenceSnapshot with O(1) maps keyed by id.

        Raises:
            ReferenceDataUnavailableError: If either table cannot be read.
        """
        products = self._load_products()
        batches = self._load_batches()
        snapshot = ReferenceSnapshot.build(products, batches)
        logger.debug(
            "reference_snapshot_loaded",
            extra={
                "product_count": len(snapshot.products),
                "batch_count": len(snapshot.batches),
            },
        )
        return snapshot

    def _load_products(self) -> list[Product]:
        stmt = (
            select(ProductModel, ProductCategoryModel.name)
            .outerjoin(
                ProductCategoryModel,
                ProductModel.category_id == ProductCategoryModel.id,
            )
            .order_by(ProductModel.name)
        )
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error(
                "reference_data_read_failed",
                extra={"entity": "products"},
                exc_info=True,
            )
            raise ReferenceDataUnavailableError("products", str(exc)) from exc

        return [
            Product(
                id=model.id,
                name=model.name,
                code=model.product_code,
                generic_name=model.generic_name or "",
                category=category_name,
                min_stock_level_godown=model.min_stock_level_godown or 0,
                min_stock_level_mr=model.min_stock_level_mr or 0,
            )
            for model, category_name in rows
        ]

    def _load_batches(self) -> list[Batch]:
        stmt = select(ProductBatchModel).order_by(ProductBatchModel.batch_number)
        try:
            models = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            logger.error(
                "reference_data_read_failed",
                extra={"entity": "batches"},
                exc_info=True,
            )
            raise ReferenceDataUnavailableError("batches", str(exc)) from exc

        return [
            Batch(
                id=model.id,
                product_id=model.product_id,
                batch_number=model.batch_number,
                expiry_date=model.expiry_date,
            )
            for model in models
        ]
