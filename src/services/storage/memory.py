"""
In-Memory Storage Implementation

Used by the test suite and by the app's ephemeral mode. The document is
kept as serialised JSON text so anything that would fail to round-trip
through a file fails here too.
"""

import json
from typing import Any, Optional

from src.services.storage.interface import DocumentStorageInterface, PersistenceError


class InMemoryDocumentStorage(DocumentStorageInterface):
    """Holds the last saved document as a JSON string."""

    def __init__(self, initial: Optional[Any] = None):
        self._payload: Optional[str] = None
        self.save_count = 0
        if initial is not None:
            self._payload = json.dumps(initial)

    @property
    def location(self) -> str:
        return "memory"

    def load(self) -> Optional[Any]:
        if self._payload is None:
            return None
        return json.loads(self._payload)

    def save(self, document: dict[str, Any]) -> None:
        try:
            self._payload = json.dumps(document, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Ledger document is not serialisable: {e}") from e
        self.save_count += 1
