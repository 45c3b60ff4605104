"""
Module: stock_kernel.models.stock_transaction
Responsibility: ORM persistence for the append-only stock transaction log.
    Every stock movement (receipt, dispatch, sale, return, adjustment,
    opening stock, replacement) is one row.  Current stock is never stored;
    it is replayed from these rows.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: no UPDATE or DELETE (ORM listeners in db/immutability.py).
    - seq is unique and monotonically increasing in write order; replay
      folds rows in ascending seq.
    - No foreign keys to products or batches, so that archiving master data
      can never block the log.  Rows whose product or batch no longer
      resolves are skipped at replay.

Failure modes:
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.
    - IntegrityError on a duplicate seq.

Sign convention:
    quantity is meant to hold the unsigned number of strips moved.  The
    reader normalizes any negative legacy value with abs(); direction comes
    from transaction_type and the location roles.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, Date, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TimestampedBase, UUIDString


class StockTransactionModel(TimestampedBase):
    """
    One immutable stock movement.

    Location roles are stored as a (type, id) pair: type is GODOWN, MR,
    CUSTOMER, SUPPLIER or another external tag; id is the MR's user id
    (or supplier id) and empty for the godown.
    """

    __tablename__ = "stock_transactions"

    __table_args__ = (
        # Query: replay scoped to products
        Index("idx_stock_tx_product_seq", "product_id", "seq"),
        # Query: replay scoped to batches
        Index("idx_stock_tx_batch", "batch_id"),
        # Query: movement history filtered by type
        Index("idx_stock_tx_type", "transaction_type"),
        Index("idx_stock_tx_group", "transaction_group_id"),
    )

    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
    )

    transaction_group_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    transaction_type: Mapped[str] = mapped_column(String(64), nullable=False)

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    batch_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    quantity_strips: Mapped[int] = mapped_column(Integer, nullable=False)

    location_type_source: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
    )

    location_id_source: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    location_type_destination: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
    )

    location_id_destination: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    cost_per_strip_at_transaction: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    reference_document_type: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    reference_document_id: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<StockTransaction #{self.seq} {self.transaction_type} "
            f"qty={self.quantity_strips} @ {self.cost_per_strip_at_transaction}>"
        )
