"""
stock_engines.tracer -- STOCK_ENGINE_TRACE records for engine calls.

``@traced_engine`` wraps an engine entry point and, after it returns,
logs one ``STOCK_ENGINE_TRACE`` record naming the engine and its version,
a fingerprint of the inputs that determine the result, and how long the
call took.  Two calls with the same fingerprint on the same engine
version must produce the same result; that is what makes a reported
stock figure traceable back to the log it was replayed from.

Only keyword arguments are fingerprinted.  A field that was not passed
is fingerprinted as null.  The engine's inputs are never modified.

Usage:
    @traced_engine(
        "replay", "1.0",
        fingerprint_fields=("transactions", "location_filter"),
        result_fields=lambda r: {"position_count": len(r.views)},
    )
    def replay_ledger(*, transactions, snapshot, location_filter=None):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import json
import logging
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

_logger = logging.getLogger("stock_kernel.engines.tracer")


def _plain(value: Any) -> Any:
    """Reduce engine inputs to JSON-ready structures with a stable order."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(str(_plain(v)) for v in value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """SHA-256 (first 16 hex chars) of the named keyword arguments."""
    selected = {name: _plain(kwargs.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
    result_fields: Callable[[Any], dict[str, Any]] | None = None,
) -> Callable:
    """Decorate an engine entry point so each call emits STOCK_ENGINE_TRACE.

    Args:
        engine_name: Engine identifier, e.g. "replay".
        engine_version: Bumped whenever the engine's output for a given
            input changes.
        fingerprint_fields: Keyword arguments that determine the result.
        result_fields: Optional function returning extra trace fields
            describing the result (counts, not contents).
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields
                else ""
            )
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            trace: dict[str, Any] = {
                "trace_type": "STOCK_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
                "function": func.__qualname__,
            }
            if result_fields is not None:
                trace.update(result_fields(result))
            _logger.info("STOCK_ENGINE_TRACE", extra=trace)
            return result

        return wrapper

    return decorator
