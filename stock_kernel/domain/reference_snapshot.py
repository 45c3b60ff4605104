"""ReferenceSnapshot -- Per-query view of product and batch master data."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from uuid import UUID

from stock_kernel.domain.dtos import Batch, Product, StockTransaction


@dataclass(frozen=True, slots=True)
class ResolvedTransaction:
    """A log fact with its product and batch attached."""

    transaction: StockTransaction
    product: Product
    batch: Batch


@dataclass(frozen=True, slots=True)
class ReferenceSnapshot:
    """
    Immutable product and batch maps read once at query start.

    Scoped to a single query; there is no process-wide cache, so master
    data edits are visible to the next query.
    """

    products: Mapping[UUID, Product] = field(
        default_factory=lambda: MappingProxyType({})
    )
    batches: Mapping[UUID, Batch] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        products: Iterable[Product],
        batches: Iterable[Batch],
    ) -> ReferenceSnapshot:
        return cls(
            products=MappingProxyType({p.id: p for p in products}),
            batches=MappingProxyType({b.id: b for b in batches}),
        )

    def product(self, product_id: UUID) -> Product | None:
        return self.products.get(product_id)

    def batch(self, batch_id: UUID) -> Batch | None:
        return self.batches.get(batch_id)

    def resolve(self, tx: StockTransaction) -> ResolvedTransaction | None:
        """Attach product and batch to ``tx``; None if either is missing."""
        product = self.products.get(tx.product_id)
        if product is None:
            return None
        batch = self.batches.get(tx.batch_id)
        if batch is None:
            return None
        return ResolvedTransaction(tx, product, batch)

    def __len__(self) -> int:
        return len(self.products) + len(self.batches)
