"""Selectors for the stock kernel (read side)."""

from stock_kernel.selectors.reference_selector import ReferenceSelector
from stock_kernel.selectors.transaction_selector import TransactionSelector

__all__ = [
    "ReferenceSelector",
    "TransactionSelector",
]
