"""
Module: stock_engines.classifier
Responsibility:
    Turn one stock transaction into the signed, located effects it has on
    stock positions.  This is the only place in the system where a
    transaction type is given meaning and the only place a quantity gets a
    sign.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain.

Routing table:

    Category        Effects
    --------------  --------------------------------------------------------
    STOCK_IN        inflow GODOWN +q
    DISPATCH        outflow GODOWN -q   when source is GODOWN
                    inflow  MR(dest) +q when destination is an MR
    SALE            outflow GODOWN -q   (SALE_DIRECT_GODOWN, source GODOWN)
                    outflow MR(src) -q  (SALE_BY_MR, source is an MR)
    RETURN          inflow  GODOWN +q   when destination is GODOWN
                    outflow MR(src) -q  when source is an MR
    ADJUSTMENT      outflow -q at GODOWN (_GODOWN) or MR(src) (_MR)
    OPENING_STOCK   inflow  +q at GODOWN (_GODOWN) or MR(dest) (_MR)
    REPLACEMENT     outflow -q at GODOWN (_GODOWN) or MR(src) (_MR)

Invariants enforced:
    - Both effects of a dual-sided row are derived from the same unsigned
      quantity, so dispatch and return conserve stock.
    - Inflows carry the row's unit cost; outflows carry it too but the
      aggregator never lets an outflow overwrite a cost basis.
    - A row whose location guard fails yields no effect for that side.

Failure modes:
    - None raised.  Unsupported types yield no effects and a WARNING
      ``unsupported_transaction_type`` record.
"""

from __future__ import annotations

from stock_kernel.domain.dtos import Effect, StockTransaction
from stock_kernel.domain.values import (
    Location,
    LocationType,
    MovementCategory,
    TransactionKind,
    parse_transaction_type,
)
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.classifier")


class TransactionClassifier:
    """
    Classify stock transactions into effects.

    Contract:
        Pure functions; no I/O, no clock.
    Guarantees:
        - ``classify`` returns 0, 1 or 2 effects.
        - Effects of one row are returned in a fixed order: the outflow
          side before the inflow side.
    """

    def classify(self, tx: StockTransaction) -> tuple[Effect, ...]:
        """Return the effects of ``tx`` (empty for unsupported types)."""
        _, effects = self.classify_with_kind(tx)
        return effects

    def classify_with_kind(
        self,
        tx: StockTransaction,
    ) -> tuple[TransactionKind | None, tuple[Effect, ...]]:
        """
        Classify ``tx`` and also return the parsed kind.

        The kind is None when the type is unsupported.
        """
        kind = parse_transaction_type(tx.transaction_type)
        if kind is None:
            logger.warning(
                "unsupported_transaction_type",
                extra={
                    "seq": tx.seq,
                    "transaction_type": tx.transaction_type,
                    "transaction_id": tx.transaction_id,
                },
            )
            return None, ()
        return kind, self.effects_for(tx, kind)

    def effects_for(
        self,
        tx: StockTransaction,
        kind: TransactionKind,
    ) -> tuple[Effect, ...]:
        source = tx.source
        destination = tx.destination

        match kind.category:
            case MovementCategory.STOCK_IN:
                return (self._inflow(tx, Location.godown()),)

            case MovementCategory.DISPATCH:
                effects: list[Effect] = []
                if source is not None and source.is_godown:
                    effects.append(self._outflow(tx, Location.godown()))
                if destination is not None and destination.is_mr:
                    effects.append(self._inflow(tx, destination))
                return tuple(effects)

            case MovementCategory.RETURN:
                effects = []
                if source is not None and source.is_mr:
                    effects.append(self._outflow(tx, source))
                if destination is not None and destination.is_godown:
                    effects.append(self._inflow(tx, Location.godown()))
                return tuple(effects)

            case MovementCategory.SALE:
                if kind.site is LocationType.GODOWN:
                    if source is not None and source.is_godown:
                        return (self._outflow(tx, Location.godown()),)
                    return ()
                if source is not None and source.is_mr:
                    return (self._outflow(tx, source),)
                return ()

            case MovementCategory.ADJUSTMENT | MovementCategory.REPLACEMENT:
                target = self._site_location(kind, source)
                if target is None:
                    return ()
                return (self._outflow(tx, target),)

            case MovementCategory.OPENING_STOCK:
                target = self._site_location(kind, destination)
                if target is None:
                    return ()
                return (self._inflow(tx, target),)

        return ()

    @staticmethod
    def _site_location(
        kind: TransactionKind,
        party: Location | None,
    ) -> Location | None:
        # Single-sided types: the godown needs no id, an MR site takes the
        # id from the given role.
        if kind.site is LocationType.GODOWN:
            return Location.godown()
        if party is not None and party.is_mr:
            return party
        return None

    @staticmethod
    def _inflow(tx: StockTransaction, location: Location) -> Effect:
        return Effect(
            product_id=tx.product_id,
            batch_id=tx.batch_id,
            location=location,
            quantity_delta=tx.quantity,
            cost_per_unit=tx.unit_cost,
            is_inflow=True,
            transaction_seq=tx.seq,
        )

    @staticmethod
    def _outflow(tx: StockTransaction, location: Location) -> Effect:
        return Effect(
            product_id=tx.product_id,
            batch_id=tx.batch_id,
            location=location,
            quantity_delta=-tx.quantity,
            cost_per_unit=tx.unit_cost,
            is_inflow=False,
            transaction_seq=tx.seq,
        )
