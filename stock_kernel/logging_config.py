"""
Structured JSON logging for the stock kernel.

Every record is rendered as one JSON object per line:

    {"ts": ..., "level": ..., "logger": ..., "message": "stock_positions_computed",
     "query_id": ..., "position_count": 3, ...}

Messages are snake_case event names; the interesting data travels in
``extra``.  Query-scoped identifiers (``query_id`` and friends) live in
context variables so that engines and selectors never have to pass them
around: the service binds them once per query and every record emitted
inside that scope carries them.

All loggers hang off the ``stock_kernel`` namespace.  Nothing is attached
to the root logger.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from functools import singledispatch
from typing import Any
from uuid import UUID

_NAMESPACE = "stock_kernel"

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"stock_log_{name}", default=None)
    for name in ("correlation_id", "query_id", "actor_id", "trace_id")
}


class LogContext:
    """Query-scoped fields added to every record (contextvars, so thread and task safe)."""

    @staticmethod
    def set(**fields: str | None) -> None:
        """Set the given fields; ``None`` values leave a field untouched."""
        for name, value in fields.items():
            if value is not None:
                _var(name).set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        return {
            name: value
            for name, var in _CONTEXT_VARS.items()
            if (value := var.get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = [
            (_var(name), _var(name).set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


def _var(name: str) -> ContextVar[str | None]:
    try:
        return _CONTEXT_VARS[name]
    except KeyError:
        raise TypeError(f"unknown log context field: {name}") from None


# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


@singledispatch
def _jsonable(value: Any) -> Any:
    return str(value)


@_jsonable.register
def _(value: date) -> str:
    # datetime is a date subclass, so this covers both.
    return value.isoformat()


@_jsonable.register
def _(value: Enum) -> Any:
    return value.value


@_jsonable.register(set)
@_jsonable.register(frozenset)
def _(value) -> list[str]:
    return sorted(str(v) for v in value)


@_jsonable.register(UUID)
@_jsonable.register(Decimal)
def _(value) -> str:
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # StockLedgerError subclasses keep their structured data as attributes.
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )

        exc_info = record.exc_info
        if exc_info and exc_info[1] is not None:
            payload.update(_exception_fields(exc_info[1]))
            payload["traceback"] = self.formatException(exc_info)

        return json.dumps(payload, default=_jsonable)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the stock_kernel namespace."""
    return logging.getLogger(f"{_NAMESPACE}.{name}")


_state_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the stock_kernel logger.

    Only the first call has an effect; later calls return immediately so
    that engine initialization and test fixtures can both call it.
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    namespace_logger = logging.getLogger(_NAMESPACE)
    namespace_logger.setLevel(level)
    namespace_logger.propagate = False
    namespace_logger.addHandler(handler)


def reset_logging() -> None:
    """Undo configure_logging.  Tests only."""
    global _configured
    with _state_lock:
        _configured = False
    namespace_logger = logging.getLogger(_NAMESPACE)
    namespace_logger.handlers.clear()
    namespace_logger.setLevel(logging.WARNING)
    namespace_logger.propagate = True
