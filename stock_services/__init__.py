"""
Stock services: read-only orchestration over selectors and engines.

Usage:
    from stock_services import StockLedgerService
    service = StockLedgerService(session, clock=clock, config=config)
    report = service.stock_report(StockFilters(location=LocationFilter.godown()))
"""

from stock_services.movement_service import StockMovementService
from stock_services.parallel import compute_positions_concurrently
from stock_services.stock_ledger_service import StockLedgerService

__all__ = [
    "StockLedgerService",
    "StockMovementService",
    "compute_positions_concurrently",
]
