"""
JSON File Storage Implementation

DESIGN DECISION: A single local JSON file is the storage backend because:
1. The shop runs on one machine with one user
2. No database setup required
3. The file is the same shape as an exported backup
4. Easy to copy for safekeeping

TRADEOFFS:
- Whole file rewritten on every change (fine at shop scale)
- No concurrent writers across processes (the store locks within one process)

Writes go to a temporary file in the same directory and are moved into
place with ``os.replace``, so a crash mid-write leaves the previous
document intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from src.services.storage.interface import (
    CorruptDocumentError,
    DocumentStorageInterface,
    PersistenceError,
    StorageError,
)

logger = structlog.get_logger(__name__)


class JsonFileDocumentStorage(DocumentStorageInterface):
    """Ledger document stored as pretty-printed UTF-8 JSON on disk."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def load(self) -> Optional[Any]:
        """Read and parse the file; a missing file means a fresh ledger."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("ledger_file_missing", path=self.location)
            return None
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e

        if not text.strip():
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptDocumentError(
                f"Ledger file {self._path} is not valid JSON "
                f"(line {e.lineno}, column {e.colno})"
            ) from e

    def save(self, document: dict[str, Any]) -> None:
        """Atomically replace the file with ``document``."""
        try:
            payload = json.dumps(document, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Ledger document is not serialisable: {e}") from e

        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write {self._path}: {e}") from e

        logger.debug("ledger_saved", path=self.location, bytes=len(payload))
