"""
Stock Kernel

Read-side core of the stock ledger:
- Append-only transaction log (never mutated by the engine)
- Per-query reference snapshot of products and batches
- Typed locations and transaction kinds
- Structured logging and typed errors
"""

__version__ = "0.1.0"
