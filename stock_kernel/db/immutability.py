"""
Append-only enforcement for the stock transaction log.

Positions are never stored; every query replays the log.  A log row edited
or removed after the fact would silently change every stock figure computed
from then on, so the ORM refuses to flush an UPDATE or DELETE of a
``StockTransactionModel``:

    session.flush()
        before_update / before_delete  ->  ImmutabilityViolationError
        (no SQL reaches the database)

Products, batches and categories stay editable.  Each query takes its own
reference snapshot, so master-data edits simply show up in the next query.

``create_tables()`` registers the guards.  Tests that need to correct a log
row on purpose can remove them with ``unregister_immutability_listeners()``.
"""

from sqlalchemy import event

from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_ENTITY = "StockTransaction"


def _blocked(operation: str, target) -> ImmutabilityViolationError:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": _ENTITY,
            "entity_id": str(target.id),
            "seq": target.seq,
            "transaction_type": target.transaction_type,
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=_ENTITY,
        entity_id=str(target.id),
        reason=f"stock log rows are append-only; {operation} refused (seq {target.seq})",
    )


def _refuse_update(mapper, connection, target):
    raise _blocked("UPDATE", target)


def _refuse_delete(mapper, connection, target):
    raise _blocked("DELETE", target)


_GUARDS = (
    ("before_update", _refuse_update),
    ("before_delete", _refuse_delete),
)


def register_immutability_listeners():
    """Install the log guards.  Safe to call more than once."""
    from stock_kernel.models.stock_transaction import StockTransactionModel

    for event_name, guard in _GUARDS:
        if not event.contains(StockTransactionModel, event_name, guard):
            event.listen(StockTransactionModel, event_name, guard)


def unregister_immutability_listeners():
    """Remove the log guards.  Tests only."""
    from stock_kernel.models.stock_transaction import StockTransactionModel

    for event_name, guard in _GUARDS:
        if event.contains(StockTransactionModel, event_name, guard):
            event.remove(StockTransactionModel, event_name, guard)
