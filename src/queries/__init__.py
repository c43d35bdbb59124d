"""Query execution package."""

from src.queries.executor import LedgerQueryExecutor

__all__ = ["LedgerQueryExecutor"]
