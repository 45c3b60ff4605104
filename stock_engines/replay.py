"""
Module: stock_engines.replay
Responsibility:
    Replay the transaction log into stock position views: resolve each
    transaction against the reference snapshot, classify it into effects,
    fold the effects into positions, and join the survivors with their
    product and batch.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes the classifier and the aggregator; the service layer supplies
    the transactions and the snapshot.

Invariants enforced:
    - One classifier for every query path.
    - Transactions are folded in the order given (seq ascending from the
      reader); replaying the same inputs always yields the same views in
      the same order.
    - Unresolved and unsupported transactions are skipped and counted,
      never fatal.

Usage:
    result = replay_ledger(
        transactions=txs,
        snapshot=snapshot,
        location_filter=LocationFilter.godown(),
    )
    result.views, result.diagnostics
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from stock_engines.aggregator import StockPositionAggregator
from stock_engines.classifier import TransactionClassifier
from stock_engines.tracer import traced_engine
from stock_kernel.domain.dtos import (
    Effect,
    LedgerDiagnostics,
    StockPositionView,
    StockTransaction,
)
from stock_kernel.domain.reference_snapshot import ReferenceSnapshot
from stock_kernel.domain.values import LocationFilter
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.replay")


@dataclass(frozen=True)
class ReplayResult:
    views: tuple[StockPositionView, ...] = ()
    diagnostics: LedgerDiagnostics = field(default_factory=LedgerDiagnostics)


@traced_engine(
    "replay",
    "1.0",
    fingerprint_fields=("transactions", "location_filter"),
    result_fields=lambda result: {"position_count": len(result.views)},
)
def replay_ledger(
    transactions: Sequence[StockTransaction],
    snapshot: ReferenceSnapshot,
    location_filter: LocationFilter | None = None,
    classifier: TransactionClassifier | None = None,
    aggregator: StockPositionAggregator | None = None,
) -> ReplayResult:
    """
    Replay ``transactions`` into position views.

    Args:
        transactions: Log facts in log order.
        snapshot: Products and batches for this query.
        location_filter: Locations in scope (default: all).
        classifier: Classifier to use (default instance if None).
        aggregator: Aggregator to use (default instance if None).
    """
    classifier = classifier or TransactionClassifier()
    aggregator = aggregator or StockPositionAggregator()
    location_filter = location_filter or LocationFilter.all()

    effects: list[Effect] = []
    applied = unresolved = unsupported = without_effect = 0

    for tx in transactions:
        if snapshot.resolve(tx) is None:
            unresolved += 1
            logger.debug(
                "transaction_unresolved",
                extra={
                    "seq": tx.seq,
                    "product_id": tx.product_id,
                    "batch_id": tx.batch_id,
                    "product_known": snapshot.product(tx.product_id) is not None,
                    "batch_known": snapshot.batch(tx.batch_id) is not None,
                },
            )
            continue

        kind, tx_effects = classifier.classify_with_kind(tx)
        if kind is None:
            unsupported += 1
            continue
        if not tx_effects:
            without_effect += 1
            logger.debug(
                "transaction_without_effect",
                extra={
                    "seq": tx.seq,
                    "transaction_type": tx.transaction_type,
                    "source": str(tx.source) if tx.source else None,
                    "destination": str(tx.destination) if tx.destination else None,
                },
            )
            continue

        applied += 1
        effects.extend(tx_effects)

    folded = aggregator.fold(effects, location_filter)

    views = tuple(
        StockPositionView(
            position=position,
            product=snapshot.products[key.product_id],
            batch=snapshot.batches[key.batch_id],
        )
        for key, position in folded.positions.items()
    )

    diagnostics = LedgerDiagnostics(
        transactions_read=len(transactions),
        transactions_applied=applied,
        skipped_unresolved=unresolved,
        skipped_unsupported=unsupported,
        without_effect=without_effect,
        effects_applied=folded.effects_applied,
        effects_filtered=folded.effects_filtered,
        positions_dropped=folded.positions_dropped,
    )
    return ReplayResult(views=views, diagnostics=diagnostics)
