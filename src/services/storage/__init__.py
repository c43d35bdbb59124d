"""
Storage Services Package

Provides the abstract document interface and concrete implementations.
Currently implements a local JSON file as the backend, but designed to be swappable.
"""

from src.services.storage.interface import (
    CorruptDocumentError,
    DocumentStorageInterface,
    PersistenceError,
    StorageError,
)
from src.services.storage.json_file import JsonFileDocumentStorage
from src.services.storage.memory import InMemoryDocumentStorage

__all__ = [
    # Interfaces
    "DocumentStorageInterface",
    # Exceptions
    "CorruptDocumentError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemoryDocumentStorage",
    "JsonFileDocumentStorage",
]
