"""
Module: stock_engines.listing
Responsibility:
    Sorting and offset/limit pagination of stock rows.  A pure
    post-processing step over an already computed result; it never changes
    which rows exist or their figures.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Sorting is stable in both directions: rows with equal keys keep their
      input order.
    - String fields compare case-insensitively.
    - Pagination reports the total count of the unpaginated input.

Failure modes:
    - InvalidSortFieldError for an unknown sort field or direction.
    - InvalidPageRequestError for a negative offset, a non-positive limit,
      or a limit above the configured maximum.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from stock_kernel.domain.dtos import StockPositionView
from stock_kernel.exceptions import InvalidPageRequestError, InvalidSortFieldError

T = TypeVar("T")


class SortField(str, Enum):
    PRODUCT_NAME = "product_name"
    GENERIC_NAME = "generic_name"
    BATCH_NUMBER = "batch_number"
    EXPIRY_DATE = "expiry_date"
    CURRENT_QUANTITY = "current_quantity"
    COST_PER_UNIT = "cost_per_unit"
    TOTAL_VALUE = "total_value"

    @classmethod
    def parse(cls, value: SortField | str) -> SortField:
        if isinstance(value, SortField):
            return value
        normalized = _SORT_ALIASES.get(value, value)
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidSortFieldError(
                str(value), tuple(f.value for f in cls)
            ) from None


# Column names used by the stock screens for the same fields.
_SORT_ALIASES = {
    "current_quantity_strips": SortField.CURRENT_QUANTITY.value,
    "cost_per_strip": SortField.COST_PER_UNIT.value,
}


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: SortDirection | str) -> SortDirection:
        if isinstance(value, SortDirection):
            return value
        try:
            return cls(value.lower())
        except (AttributeError, ValueError):
            raise InvalidSortFieldError(
                f"direction={value}", tuple(d.value for d in cls)
            ) from None


def _sort_key(field: SortField) -> Callable[[StockPositionView], Any]:
    match field:
        case SortField.PRODUCT_NAME:
            return lambda v: v.product_name.casefold()
        case SortField.GENERIC_NAME:
            return lambda v: (v.generic_name or "").casefold()
        case SortField.BATCH_NUMBER:
            return lambda v: v.batch_number.casefold()
        case SortField.EXPIRY_DATE:
            return lambda v: v.expiry_date
        case SortField.CURRENT_QUANTITY:
            return lambda v: v.current_quantity
        case SortField.COST_PER_UNIT:
            return lambda v: v.cost_per_unit
        case SortField.TOTAL_VALUE:
            return lambda v: v.total_value
    raise InvalidSortFieldError(str(field), tuple(f.value for f in SortField))


def sort_views(
    items: Sequence[T],
    field: SortField | str,
    direction: SortDirection | str = SortDirection.ASC,
    view_of: Callable[[T], StockPositionView] | None = None,
) -> list[T]:
    """
    Return ``items`` sorted by ``field``.

    ``view_of`` extracts the StockPositionView from an item when items are
    wrappers (e.g. report rows); by default items are views.
    """
    key = _sort_key(SortField.parse(field))
    reverse = SortDirection.parse(direction) is SortDirection.DESC
    if view_of is None:
        return sorted(items, key=key, reverse=reverse)
    return sorted(items, key=lambda item: key(view_of(item)), reverse=reverse)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: tuple[T, ...]
    total_count: int
    offset: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total_count


def validate_page_request(offset: int, limit: int, max_limit: int | None = None) -> None:
    if offset < 0:
        raise InvalidPageRequestError(offset, limit, "offset must be >= 0")
    if limit <= 0:
        raise InvalidPageRequestError(offset, limit, "limit must be > 0")
    if max_limit is not None and limit > max_limit:
        raise InvalidPageRequestError(
            offset, limit, f"limit must be <= {max_limit}"
        )


def paginate(
    items: Sequence[T],
    offset: int,
    limit: int,
    max_limit: int | None = None,
) -> Page[T]:
    """Slice ``items`` to one page; an offset past the end yields no items."""
    validate_page_request(offset, limit, max_limit)
    return Page(
        items=tuple(items[offset : offset + limit]),
        total_count=len(items),
        offset=offset,
        limit=limit,
    )
