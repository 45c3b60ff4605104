"""
Module: stock_engines.aggregator
Responsibility:
    Fold classified effects, in log order, into stock positions keyed by
    (product, batch, location), maintaining a running quantity and a
    last-inflow cost basis per position.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The location filter is applied per effect during the fold, so a
      GODOWN-only query never creates or touches an MR position.
    - Cost basis: a new position takes the cost of the effect that creates
      it; every later inflow overwrites it; outflows never change it.
    - Quantities may go negative mid-fold.  Only positions whose final
      quantity is <= 0 are dropped, after the fold.
    - total_value = current_quantity * cost_per_unit, computed once per
      surviving position.
    - Output order is the order in which positions were first created.

Failure modes:
    - None.  The aggregator trusts the classifier's effects.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from stock_kernel.domain.dtos import Effect, PositionKey, StockPosition
from stock_kernel.domain.values import LocationFilter
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.aggregator")


@dataclass
class _RunningPosition:
    quantity: int
    cost_per_unit: Decimal


@dataclass(frozen=True)
class AggregationResult:
    """Surviving positions plus fold counters."""

    positions: dict[PositionKey, StockPosition] = field(default_factory=dict)
    effects_applied: int = 0
    effects_filtered: int = 0
    positions_dropped: int = 0


class StockPositionAggregator:
    """
    Left fold of effects into positions.

    Contract:
        Effects must arrive in log order, with the effects of one
        transaction contiguous.
    """

    def aggregate(
        self,
        effects: Iterable[Effect],
        location_filter: LocationFilter | None = None,
    ) -> dict[PositionKey, StockPosition]:
        """Return the positive positions produced by folding ``effects``."""
        return self.fold(effects, location_filter).positions

    def fold(
        self,
        effects: Iterable[Effect],
        location_filter: LocationFilter | None = None,
    ) -> AggregationResult:
        location_filter = location_filter or LocationFilter.all()
        running: dict[PositionKey, _RunningPosition] = {}
        applied = 0
        filtered = 0

        for effect in effects:
            if not location_filter.admits(effect.location):
                filtered += 1
                continue

            key = effect.position_key
            position = running.get(key)
            if position is None:
                position = _RunningPosition(0, effect.cost_per_unit)
                running[key] = position

            position.quantity += effect.quantity_delta
            if effect.is_inflow:
                position.cost_per_unit = effect.cost_per_unit
            applied += 1

        positions: dict[PositionKey, StockPosition] = {}
        for key, position in running.items():
            if position.quantity <= 0:
                continue
            positions[key] = StockPosition(
                key=key,
                current_quantity=position.quantity,
                cost_per_unit=position.cost_per_unit,
                total_value=position.cost_per_unit * position.quantity,
            )

        dropped = len(running) - len(positions)
        logger.debug(
            "effects_folded",
            extra={
                "location_filter": str(location_filter),
                "effects_applied": applied,
                "effects_filtered": filtered,
                "positions_kept": len(positions),
                "positions_dropped": dropped,
            },
        )
        return AggregationResult(
            positions=positions,
            effects_applied=applied,
            effects_filtered=filtered,
            positions_dropped=dropped,
        )
