"""
Value Objects -- Locations and transaction kinds.

Responsibility:
    Immutable value types that replace the stringly-typed location tags
    ("GODOWN", "MR", "CUSTOMER", ...) and raw transaction-type strings
    of the log with closed variants:

    - ``Location``: Godown | Mr(id) | Customer | Supplier(id) | Other(tag)
    - ``LocationFilter``: ALL | GODOWN | MR (any) | MR(id)
    - ``TransactionKind``: parsed transaction type (category + site)

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A GODOWN location never carries an id (location_id == "").
    - An MR location always carries a non-empty id.
    - A transaction type string is parsed in exactly one place
      (``parse_transaction_type``); everything downstream matches on
      ``MovementCategory``.

Failure modes:
    - ValueError from ``Location`` construction on a blank MR id.
    - ``parse_transaction_type`` returns None for unsupported tags (it
      never raises); callers decide whether to skip or fail.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LocationType(str, Enum):
    """Kinds of places stock can sit in or move between."""

    GODOWN = "GODOWN"
    MR = "MR"
    CUSTOMER = "CUSTOMER"
    SUPPLIER = "SUPPLIER"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class Location:
    """
    A tagged location.

    ``location_id`` is "" for the godown (there is exactly one), the MR's
    user id for MRs, optional for suppliers, and unused for customers.
    ``tag`` keeps the raw external tag for ``OTHER`` locations.
    """

    location_type: LocationType
    location_id: str = ""
    tag: str | None = None

    def __post_init__(self) -> None:
        if self.location_type is LocationType.GODOWN and self.location_id:
            raise ValueError("Godown location does not take an id")
        if self.location_type is LocationType.MR and not self.location_id:
            raise ValueError("MR location requires a non-empty id")

    @classmethod
    def godown(cls) -> Location:
        return cls(LocationType.GODOWN)

    @classmethod
    def mr(cls, mr_id: str) -> Location:
        return cls(LocationType.MR, str(mr_id))

    @classmethod
    def customer(cls) -> Location:
        return cls(LocationType.CUSTOMER)

    @classmethod
    def supplier(cls, supplier_id: str | None = None) -> Location:
        return cls(LocationType.SUPPLIER, supplier_id or "")

    @classmethod
    def other(cls, tag: str) -> Location:
        return cls(LocationType.OTHER, tag=tag)

    @classmethod
    def from_log(
        cls,
        location_type: str | None,
        location_id: str | None,
    ) -> Location | None:
        """
        Build a Location from the two log columns.

        The single boundary where raw location tags are interpreted.
        Returns None when the role is not populated.  An MR tag without an
        id is treated as unpopulated: there is no MR position to credit or
        debit.
        """
        if not location_type:
            return None
        tag = location_type.strip().upper()
        match tag:
            case "GODOWN":
                return cls.godown()
            case "MR":
                if not location_id:
                    return None
                return cls.mr(location_id)
            case "CUSTOMER":
                return cls.customer()
            case "SUPPLIER":
                return cls.supplier(location_id)
            case _:
                return cls.other(tag)

    @property
    def is_godown(self) -> bool:
        return self.location_type is LocationType.GODOWN

    @property
    def is_mr(self) -> bool:
        return self.location_type is LocationType.MR

    def __str__(self) -> str:
        if self.location_id:
            return f"{self.location_type.value}:{self.location_id}"
        return self.tag or self.location_type.value


class LocationScope(str, Enum):
    """Which locations a stock query covers."""

    ALL = "ALL"
    GODOWN = "GODOWN"
    MR = "MR"


@dataclass(frozen=True, slots=True)
class LocationFilter:
    """
    Location predicate for a stock query.

    ``scope=MR`` with ``mr_id=None`` means every MR; with an id it means
    that MR only.
    """

    scope: LocationScope = LocationScope.ALL
    mr_id: str | None = None

    def __post_init__(self) -> None:
        if self.mr_id is not None and self.scope is not LocationScope.MR:
            raise ValueError("mr_id is only valid with the MR scope")
        if self.mr_id is not None and not self.mr_id.strip():
            raise ValueError("mr_id must not be blank")

    @classmethod
    def all(cls) -> LocationFilter:
        return cls(LocationScope.ALL)

    @classmethod
    def godown(cls) -> LocationFilter:
        return cls(LocationScope.GODOWN)

    @classmethod
    def any_mr(cls) -> LocationFilter:
        return cls(LocationScope.MR)

    @classmethod
    def mr(cls, mr_id: str) -> LocationFilter:
        return cls(LocationScope.MR, str(mr_id))

    def admits(self, location: Location) -> bool:
        """True if stock at ``location`` is in scope."""
        match self.scope:
            case LocationScope.ALL:
                return True
            case LocationScope.GODOWN:
                return location.is_godown
            case LocationScope.MR:
                if not location.is_mr:
                    return False
                return self.mr_id is None or location.location_id == self.mr_id

    def __str__(self) -> str:
        if self.mr_id is not None:
            return f"MR:{self.mr_id}"
        return self.scope.value


# =============================================================================
# Transaction taxonomy
# =============================================================================


class TransactionType(str, Enum):
    """Canonical transaction-type tags written by the log producers."""

    STOCK_IN_GODOWN = "STOCK_IN_GODOWN"
    DISPATCH_TO_MR = "DISPATCH_TO_MR"
    SALE_DIRECT_GODOWN = "SALE_DIRECT_GODOWN"
    SALE_BY_MR = "SALE_BY_MR"
    RETURN_TO_GODOWN = "RETURN_TO_GODOWN"
    ADJUST_DAMAGE_GODOWN = "ADJUST_DAMAGE_GODOWN"
    ADJUST_DAMAGE_MR = "ADJUST_DAMAGE_MR"
    ADJUST_LOSS_GODOWN = "ADJUST_LOSS_GODOWN"
    ADJUST_LOSS_MR = "ADJUST_LOSS_MR"
    ADJUST_EXPIRED_GODOWN = "ADJUST_EXPIRED_GODOWN"
    ADJUST_EXPIRED_MR = "ADJUST_EXPIRED_MR"
    OPENING_STOCK_GODOWN = "OPENING_STOCK_GODOWN"
    OPENING_STOCK_MR = "OPENING_STOCK_MR"
    REPLACEMENT_FROM_GODOWN = "REPLACEMENT_FROM_GODOWN"
    REPLACEMENT_FROM_MR = "REPLACEMENT_FROM_MR"


class MovementCategory(str, Enum):
    """Families of transaction types that share location-effect rules."""

    STOCK_IN = "STOCK_IN"           # single-sided inflow at godown
    DISPATCH = "DISPATCH"           # dual-sided: godown -> MR
    SALE = "SALE"                   # single-sided outflow at site
    RETURN = "RETURN"               # dual-sided: MR -> godown
    ADJUSTMENT = "ADJUSTMENT"       # single-sided outflow at site
    OPENING_STOCK = "OPENING_STOCK"  # single-sided inflow at site
    REPLACEMENT = "REPLACEMENT"     # single-sided outflow at site


@dataclass(frozen=True, slots=True)
class TransactionKind:
    """
    Parsed transaction type.

    ``site`` names the location family a single-sided type acts on
    (GODOWN or MR); it is None for dual-sided categories whose routing is
    read from the source/destination roles.
    """

    raw: str
    category: MovementCategory
    site: LocationType | None = None


_ADJUSTMENT_REASONS = ("DAMAGE", "LOSS", "EXPIRED")


def parse_transaction_type(raw: str | None) -> TransactionKind | None:
    """
    Parse a raw transaction-type tag into a ``TransactionKind``.

    Exact tags are matched first; the families that the log producers
    extend with suffixes (returns, adjustments, opening stock,
    replacements) match by substring.  Returns None for anything not in
    the taxonomy, including ``RETURN_TO_MR``.
    """
    if not raw:
        return None
    tag = raw.strip().upper()

    if tag == TransactionType.STOCK_IN_GODOWN.value:
        return TransactionKind(tag, MovementCategory.STOCK_IN, LocationType.GODOWN)
    if tag == TransactionType.DISPATCH_TO_MR.value:
        return TransactionKind(tag, MovementCategory.DISPATCH)
    if tag == TransactionType.SALE_DIRECT_GODOWN.value:
        return TransactionKind(tag, MovementCategory.SALE, LocationType.GODOWN)
    if tag == TransactionType.SALE_BY_MR.value:
        return TransactionKind(tag, MovementCategory.SALE, LocationType.MR)
    if "RETURN_TO_GODOWN" in tag:
        return TransactionKind(tag, MovementCategory.RETURN)

    for reason in _ADJUSTMENT_REASONS:
        if f"ADJUST_{reason}_" in tag:
            site = _site_of(tag)
            if site is None:
                return None
            return TransactionKind(tag, MovementCategory.ADJUSTMENT, site)

    if "OPENING_STOCK_GODOWN" in tag:
        return TransactionKind(tag, MovementCategory.OPENING_STOCK, LocationType.GODOWN)
    if "OPENING_STOCK_MR" in tag:
        return TransactionKind(tag, MovementCategory.OPENING_STOCK, LocationType.MR)
    if "REPLACEMENT_FROM_GODOWN" in tag:
        return TransactionKind(tag, MovementCategory.REPLACEMENT, LocationType.GODOWN)
    if "REPLACEMENT_FROM_MR" in tag:
        return TransactionKind(tag, MovementCategory.REPLACEMENT, LocationType.MR)

    return None


def _site_of(tag: str) -> LocationType | None:
    # _GODOWN is checked first: "_MR" never occurs inside "_GODOWN".
    if "_GODOWN" in tag:
        return LocationType.GODOWN
    if "_MR" in tag:
        return LocationType.MR
    return None
