"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger in a local JSON file today
2. Use in-memory storage for testing
3. Swap in another backend later without touching the store
4. Keep business logic decoupled from storage implementation

The interface is intentionally tiny. The ledger is one document and is
always read and written whole, so there is nothing to query at this layer.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class DocumentStorageInterface(ABC):
    """
    Abstract interface for whole-document ledger storage.

    Any storage implementation (JSON file, in-memory, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[Any]:
        """
        Read the stored document.

        Returns:
            The parsed JSON document, or None if nothing has been saved yet

        Raises:
            CorruptDocumentError: If stored data cannot be parsed
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, document: dict[str, Any]) -> None:
        """
        Replace the stored document.

        Args:
            document: JSON-ready dict of the whole ledger

        Raises:
            PersistenceError: If the write fails. The previously stored
                document must still be intact.
        """
        pass

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the document lives."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """Writing the ledger document failed."""
    pass


class CorruptDocumentError(StorageError):
    """The stored document exists but is not valid JSON."""
    pass
