"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow through the stock
    replay pipeline: Product and Batch (reference data), StockTransaction
    (log fact), Effect (classifier output), StockPosition (aggregator
    output), StockPositionView (joined with reference data), and the query
    envelope types (StockFilters, StockQueryResult, StockReport).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  Conversion from ORM rows happens in the
    selectors, never here.

Invariants enforced:
    - StockTransaction.quantity is an unsigned magnitude (>= 0); the
      classifier is the only place that assigns a sign.
    - unit_cost and cost_per_unit are Decimal, never float.
    - A StockPosition's total_value equals current_quantity * cost_per_unit.
    - StockFilters rejects an inverted expiry range at construction.

Failure modes:
    - ValueError on StockTransaction with a negative quantity or cost.
    - InvalidFilterError on StockFilters with expiry_from > expiry_to.

Data flow:
    StockTransaction -> Effect(s) -> StockPosition -> StockPositionView
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from stock_kernel.domain.values import (
    Location,
    LocationFilter,
    LocationType,
)
from stock_kernel.exceptions import InvalidFilterError

ZERO = Decimal("0")


# =============================================================================
# Reference data
# =============================================================================


@dataclass(frozen=True, slots=True)
class Product:
    """Product master row as seen by one query."""

    id: UUID
    name: str
    code: str
    generic_name: str = ""
    category: str | None = None
    min_stock_level_godown: int = 0
    min_stock_level_mr: int = 0

    def __post_init__(self) -> None:
        if self.min_stock_level_godown < 0 or self.min_stock_level_mr < 0:
            raise ValueError("Minimum stock levels must be >= 0")

    def min_stock_level_for(self, location_type: LocationType) -> int:
        """Threshold used for low-stock status at a location family."""
        if location_type is LocationType.MR:
            return self.min_stock_level_mr
        return self.min_stock_level_godown


@dataclass(frozen=True, slots=True)
class Batch:
    """Manufacturing batch of a product."""

    id: UUID
    product_id: UUID
    batch_number: str
    expiry_date: date


# =============================================================================
# Transaction log
# =============================================================================


@dataclass(frozen=True, slots=True)
class StockTransaction:
    """
    One immutable fact from the stock transaction log.

    ``seq`` is the log position; replay folds in ascending ``seq``.
    ``quantity`` is always the unsigned number of strips moved.
    """

    seq: int
    product_id: UUID
    batch_id: UUID
    transaction_type: str
    quantity: int
    unit_cost: Decimal
    occurred_at: date
    source: Location | None = None
    destination: Location | None = None
    transaction_id: UUID | None = None
    transaction_group_id: UUID | None = None
    reference_document_type: str | None = None
    reference_document_id: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(
                f"Transaction quantity must be unsigned, got {self.quantity}"
            )
        if self.unit_cost < ZERO:
            raise ValueError(
                f"Transaction unit cost must be >= 0, got {self.unit_cost}"
            )


@dataclass(frozen=True, slots=True)
class Effect:
    """
    A signed quantity change at exactly one location.

    Produced by the classifier; one log row yields zero, one or two.
    """

    product_id: UUID
    batch_id: UUID
    location: Location
    quantity_delta: int
    cost_per_unit: Decimal
    is_inflow: bool
    transaction_seq: int

    @property
    def position_key(self) -> PositionKey:
        return PositionKey(self.product_id, self.batch_id, self.location)


# =============================================================================
# Positions
# =============================================================================


@dataclass(frozen=True, slots=True)
class PositionKey:
    """Identity of a stock position: (product, batch, location)."""

    product_id: UUID
    batch_id: UUID
    location: Location

    @property
    def location_type(self) -> LocationType:
        return self.location.location_type

    @property
    def location_id(self) -> str:
        return self.location.location_id


@dataclass(frozen=True, slots=True)
class StockPosition:
    """Replayed quantity and cost basis at one key."""

    key: PositionKey
    current_quantity: int
    cost_per_unit: Decimal
    total_value: Decimal

    @property
    def location(self) -> Location:
        return self.key.location


@dataclass(frozen=True, slots=True)
class StockPositionView:
    """A position joined with its product and batch descriptive fields."""

    position: StockPosition
    product: Product
    batch: Batch

    @property
    def product_id(self) -> UUID:
        return self.product.id

    @property
    def batch_id(self) -> UUID:
        return self.batch.id

    @property
    def location(self) -> Location:
        return self.position.location

    @property
    def location_type(self) -> LocationType:
        return self.position.key.location_type

    @property
    def location_id(self) -> str:
        return self.position.key.location_id

    @property
    def product_name(self) -> str:
        return self.product.name

    @property
    def product_code(self) -> str:
        return self.product.code

    @property
    def generic_name(self) -> str:
        return self.product.generic_name

    @property
    def category(self) -> str | None:
        return self.product.category

    @property
    def batch_number(self) -> str:
        return self.batch.batch_number

    @property
    def expiry_date(self) -> date:
        return self.batch.expiry_date

    @property
    def current_quantity(self) -> int:
        return self.position.current_quantity

    @property
    def cost_per_unit(self) -> Decimal:
        return self.position.cost_per_unit

    @property
    def total_value(self) -> Decimal:
        return self.position.total_value

    @property
    def min_stock_level(self) -> int:
        return self.product.min_stock_level_for(self.location_type)


# =============================================================================
# Status
# =============================================================================


class StockStatus(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    GOOD = "good"


class ExpiryStatus(str, Enum):
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring-soon"
    GOOD = "good"


@dataclass(frozen=True, slots=True)
class PositionStatus:
    stock: StockStatus
    expiry: ExpiryStatus


@dataclass(frozen=True, slots=True)
class StockSummary:
    """
    Aggregate figures over a full (unpaginated) filtered result set.

    ``expiring_soon_count`` excludes rows that have already expired; those
    are counted in ``expired_count``.
    """

    total_products: int = 0
    total_batches: int = 0
    total_value: Decimal = ZERO
    low_stock_count: int = 0
    expiring_soon_count: int = 0
    expired_count: int = 0
    godown_position_count: int = 0
    mr_position_count: int = 0


# =============================================================================
# Query envelope
# =============================================================================


@dataclass(frozen=True, slots=True)
class StockFilters:
    """
    Filters for a stock query.

    Text filters are case-insensitive substrings; blank text is treated as
    no filter.  The expiry range is inclusive and either bound may be
    omitted.
    """

    location: LocationFilter = field(default_factory=LocationFilter.all)
    product_text: str | None = None
    batch_text: str | None = None
    category: str | None = None
    expiry_from: date | None = None
    expiry_to: date | None = None

    def __post_init__(self) -> None:
        if (
            self.expiry_from is not None
            and self.expiry_to is not None
            and self.expiry_from > self.expiry_to
        ):
            raise InvalidFilterError(
                "expiry_range",
                f"expiry_from {self.expiry_from} is after expiry_to {self.expiry_to}",
            )

    @property
    def has_reference_filters(self) -> bool:
        """True if any filter narrows products or batches."""
        return any(
            (
                _present(self.product_text),
                _present(self.batch_text),
                _present(self.category),
                self.expiry_from is not None,
                self.expiry_to is not None,
            )
        )


def _present(text: str | None) -> bool:
    return text is not None and text.strip() != ""


class QueryOutcome(str, Enum):
    """How a successful query ended."""

    COMPUTED = "computed"
    FILTERED_OUT = "filtered_out"


@dataclass(frozen=True, slots=True)
class LedgerDiagnostics:
    """Counters describing one replay."""

    transactions_read: int = 0
    transactions_applied: int = 0
    skipped_unresolved: int = 0
    skipped_unsupported: int = 0
    without_effect: int = 0
    effects_applied: int = 0
    effects_filtered: int = 0
    positions_dropped: int = 0


@dataclass(frozen=True, slots=True)
class StockQueryResult:
    positions: tuple[StockPositionView, ...]
    outcome: QueryOutcome
    diagnostics: LedgerDiagnostics = field(default_factory=LedgerDiagnostics)


@dataclass(frozen=True, slots=True)
class StockReportRow:
    view: StockPositionView
    status: PositionStatus


@dataclass(frozen=True, slots=True)
class StockReport:
    """A sorted page of stock rows plus the summary over the full set."""

    rows: tuple[StockReportRow, ...]
    total_count: int
    offset: int
    limit: int
    summary: StockSummary
    outcome: QueryOutcome
    as_of: date

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.rows) < self.total_count


# =============================================================================
# Movement history
# =============================================================================


@dataclass(frozen=True, slots=True)
class StockMovement:
    """One log row as shown in the movement history."""

    transaction_id: UUID
    seq: int
    occurred_at: date
    transaction_type: str
    product_id: UUID
    product_name: str | None
    product_code: str | None
    batch_id: UUID
    batch_number: str | None
    quantity: int
    unit_cost: Decimal
    source: Location | None
    destination: Location | None
    transaction_group_id: UUID | None = None
    reference_document_type: str | None = None
    reference_document_id: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class MovementPage:
    movements: tuple[StockMovement, ...]
    total_count: int
    offset: int
    limit: int
