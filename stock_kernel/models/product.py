"""
Module: stock_kernel.models.product
Responsibility: ORM persistence for product categories and products, the
    master data that stock positions are joined with.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Product code is unique.
    - Minimum stock levels are non-negative and default to 0.

Master data is mutable.  The stock engine reads it once per query into a
ReferenceSnapshot and never writes it.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TimestampedBase, UUIDString


class ProductCategoryModel(TimestampedBase):
    """A named product category (e.g. "Antibiotics")."""

    __tablename__ = "product_categories"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<ProductCategory {self.name}>"


class ProductModel(TimestampedBase):
    """
    Product master row.

    ``min_stock_level_godown`` and ``min_stock_level_mr`` are the low-stock
    thresholds applied to godown and MR positions respectively.
    """

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint(
            "min_stock_level_godown >= 0", name="ck_product_min_godown_non_negative"
        ),
        CheckConstraint(
            "min_stock_level_mr >= 0", name="ck_product_min_mr_non_negative"
        ),
        Index("idx_product_category", "category_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    product_code: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    generic_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        default="",
    )

    category_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("product_categories.id"),
        nullable=True,
    )

    min_stock_level_godown: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    min_stock_level_mr: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    category: Mapped[ProductCategoryModel | None] = relationship()

    def __repr__(self) -> str:
        return f"<Product {self.product_code}: {self.name}>"
