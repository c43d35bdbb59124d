"""Services package."""

from src.services.messaging import (
    InvalidPhoneNumberError,
    WhatsAppReminderService,
)
from src.services.storage import (
    CorruptDocumentError,
    DocumentStorageInterface,
    InMemoryDocumentStorage,
    JsonFileDocumentStorage,
    PersistenceError,
    StorageError,
)

__all__ = [
    # Messaging services
    "InvalidPhoneNumberError",
    "WhatsAppReminderService",
    # Storage services
    "CorruptDocumentError",
    "DocumentStorageInterface",
    "InMemoryDocumentStorage",
    "JsonFileDocumentStorage",
    "PersistenceError",
    "StorageError",
]
