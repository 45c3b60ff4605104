"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A stock query either produces a (possibly empty) result or fails with a
reason. Callers must be able to tell the two failure families apart
without parsing message strings:

    try:
        rows = service.compute_stock_positions(filters)
    except ReferenceDataUnavailableError as e:
        # Products or batches could not be read: no partial result exists
        show_error(code=e.code, reason=e.reason)
    except QueryError as e:
        # The caller asked for something malformed (bad filter, sort, page)
        show_validation_error(code=e.code, field=e.field)

Every class carries a ``code`` class attribute (machine-readable) and
stores its context as attributes (structured, survives logging).

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockLedgerError (base)
    |
    +-- ReferenceDataError
    |   +-- ReferenceDataUnavailableError
    |
    +-- TransactionLogError
    |   +-- TransactionLogUnavailableError
    |
    +-- QueryError
    |   +-- InvalidFilterError
    |   +-- InvalidSortFieldError
    |   +-- InvalidPageRequestError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigError
        +-- InvalidConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                            | When Raised
----------------|---------------------------------|------------------------------------
Reference data  | REFERENCE_DATA_UNAVAILABLE      | Products or batches unreadable
----------------|---------------------------------|------------------------------------
Transaction log | TRANSACTION_LOG_UNAVAILABLE     | Log rows could not be read
----------------|---------------------------------|------------------------------------
Query           | INVALID_FILTER                  | Malformed filter (e.g. from > to)
                | INVALID_SORT_FIELD              | Unknown sort field
                | INVALID_PAGE_REQUEST            | Negative offset / non-positive limit
----------------|---------------------------------|------------------------------------
Immutability    | IMMUTABILITY_VIOLATION          | Update/delete of a log row
----------------|---------------------------------|------------------------------------
Config          | INVALID_CONFIG                  | Config value missing or out of range

What is NOT an exception:
    - A transaction whose product or batch does not resolve (skipped, logged)
    - An unsupported transaction type (skipped, logged)
    - A filter that matches nothing (empty result, QueryOutcome.FILTERED_OUT)
"""


class StockLedgerError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_LEDGER_ERROR"


# Reference data exceptions


class ReferenceDataError(StockLedgerError):
    """Base exception for product/batch master data errors."""

    code: str = "REFERENCE_DATA_ERROR"


class ReferenceDataUnavailableError(ReferenceDataError):
    """
    Product or batch master data could not be read.

    Fatal for the whole query: classification needs both product and
    batch to resolve, so there is no meaningful partial result.
    """

    code: str = "REFERENCE_DATA_UNAVAILABLE"

    def __init__(self, entity: str, reason: str):
        self.entity = entity
        self.reason = reason
        super().__init__(f"Reference data unavailable ({entity}): {reason}")


# Transaction log exceptions


class TransactionLogError(StockLedgerError):
    """Base exception for transaction log errors."""

    code: str = "TRANSACTION_LOG_ERROR"


class TransactionLogUnavailableError(TransactionLogError):
    """The transaction log could not be read."""

    code: str = "TRANSACTION_LOG_UNAVAILABLE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Transaction log unavailable: {reason}")


# Query exceptions


class QueryError(StockLedgerError):
    """Base exception for malformed query requests."""

    code: str = "QUERY_ERROR"


class InvalidFilterError(QueryError):
    """A filter value is malformed."""

    code: str = "INVALID_FILTER"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid filter {field}: {reason}")


class InvalidSortFieldError(QueryError):
    """Requested sort field is not sortable."""

    code: str = "INVALID_SORT_FIELD"

    def __init__(self, field: str, allowed: tuple[str, ...]):
        self.field = field
        self.allowed = allowed
        self.reason = f"must be one of {', '.join(allowed)}"
        super().__init__(f"Invalid sort field {field!r}: {self.reason}")


class InvalidPageRequestError(QueryError):
    """Offset/limit pair is out of range."""

    code: str = "INVALID_PAGE_REQUEST"

    def __init__(self, offset: int, limit: int, reason: str):
        self.field = "page"
        self.offset = offset
        self.limit = limit
        self.reason = reason
        super().__init__(
            f"Invalid page request (offset={offset}, limit={limit}): {reason}"
        )


# Immutability exceptions


class ImmutabilityError(StockLedgerError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Stock transaction log rows are immutable from creation.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration exceptions


class ConfigError(StockLedgerError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class InvalidConfigError(ConfigError):
    """A configuration value is missing or out of range."""

    code: str = "INVALID_CONFIG"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration {key}: {reason}")
