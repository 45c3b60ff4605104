"""
Module: stock_engines.filters
Responsibility:
    Resolve the descriptive stock filters (product text, batch text,
    category, expiry range) to candidate product and batch id sets against
    the reference snapshot, before the transaction log is read.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Text filters are case-insensitive substring matches; blank text is
      ignored.  Product text matches name or code.
    - Category matches the category name exactly.
    - The expiry range is inclusive on both ends; either end may be open.
    - An id set of None means "no restriction"; an empty set means nothing
      can match and the caller must not read the log.
    - The location filter is never applied here; it belongs to the fold.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from stock_kernel.domain.dtos import Batch, Product, StockFilters
from stock_kernel.domain.reference_snapshot import ReferenceSnapshot
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.filters")


@dataclass(frozen=True, slots=True)
class CandidateSelection:
    """Id sets the log read is restricted to (None = unrestricted)."""

    product_ids: frozenset[UUID] | None = None
    batch_ids: frozenset[UUID] | None = None

    @property
    def is_empty(self) -> bool:
        return (self.product_ids is not None and not self.product_ids) or (
            self.batch_ids is not None and not self.batch_ids
        )

    @property
    def is_unrestricted(self) -> bool:
        return self.product_ids is None and self.batch_ids is None


def _normalized(text: str | None) -> str | None:
    if text is None:
        return None
    text = text.strip()
    return text.casefold() if text else None


def product_matches(product: Product, filters: StockFilters) -> bool:
    needle = _normalized(filters.product_text)
    if needle is not None and not (
        needle in product.name.casefold() or needle in product.code.casefold()
    ):
        return False
    category = filters.category.strip() if filters.category else None
    if category and product.category != category:
        return False
    return True


def batch_matches(batch: Batch, filters: StockFilters) -> bool:
    needle = _normalized(filters.batch_text)
    if needle is not None and needle not in batch.batch_number.casefold():
        return False
    if filters.expiry_from is not None and batch.expiry_date < filters.expiry_from:
        return False
    if filters.expiry_to is not None and batch.expiry_date > filters.expiry_to:
        return False
    return True


def resolve_candidate_ids(
    snapshot: ReferenceSnapshot,
    filters: StockFilters,
) -> CandidateSelection:
    """
    Resolve ``filters`` to candidate id sets.

    Returns an unrestricted selection when no descriptive filter is set.
    """
    if not filters.has_reference_filters:
        return CandidateSelection()

    product_filtered = bool(_normalized(filters.product_text)) or bool(
        filters.category and filters.category.strip()
    )
    batch_filtered = (
        bool(_normalized(filters.batch_text))
        or filters.expiry_from is not None
        or filters.expiry_to is not None
    )

    product_ids: frozenset[UUID] | None = None
    if product_filtered:
        product_ids = frozenset(
            p.id for p in snapshot.products.values() if product_matches(p, filters)
        )

    batch_ids: frozenset[UUID] | None = None
    if batch_filtered:
        batch_ids = frozenset(
            b.id
            for b in snapshot.batches.values()
            if batch_matches(b, filters)
            and (product_ids is None or b.product_id in product_ids)
        )

    selection = CandidateSelection(product_ids=product_ids, batch_ids=batch_ids)
    logger.debug(
        "filters_resolved",
        extra={
            "product_candidates": None if product_ids is None else len(product_ids),
            "batch_candidates": None if batch_ids is None else len(batch_ids),
            "is_empty": selection.is_empty,
        },
    )
    return selection
