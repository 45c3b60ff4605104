"""
Module: stock_kernel.models.batch
Responsibility: ORM persistence for manufacturing batches of a product.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (product_id, batch_number) is unique.
    - expiry_date is always present; expiry status is derived from it.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TimestampedBase, UUIDString


class ProductBatchModel(TimestampedBase):
    """One batch of a product, with its expiry date."""

    __tablename__ = "product_batches"

    __table_args__ = (
        UniqueConstraint(
            "product_id", "batch_number", name="uq_batch_product_number"
        ),
        # Query: batches expiring in a date range
        Index("idx_batch_expiry", "expiry_date"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)

    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<ProductBatch {self.batch_number} exp={self.expiry_date}>"
