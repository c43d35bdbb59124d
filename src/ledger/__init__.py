"""
Ledger Package

The Ledger Store lives in ``src.ledger.store``; the errors its operations
raise are re-exported here so the validator and services can share them
without importing the store.
"""

from src.ledger.errors import (
    InvalidPocketError,
    LedgerError,
    NotFoundError,
    SchemaError,
    ValidationError,
)

__all__ = [
    "InvalidPocketError",
    "LedgerError",
    "NotFoundError",
    "SchemaError",
    "ValidationError",
]
