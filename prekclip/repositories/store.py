"""
The State Store: one read-modify-write cycle per logical operation.

Every operation loads the full document, works on that in-memory copy and,
when it mutates, writes the full document back. A process-wide lock makes
each cycle the only writer, so two concurrent requests can no longer
overwrite each other's changes. An exception raised inside a transaction
skips the write, leaving persisted state untouched.
"""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator, Protocol
import logging
import threading

from prekclip.core.config import Settings, get_settings
from prekclip.domain.entities import Database
from prekclip.repositories.json_storage import JsonDocumentStorage
from prekclip.repositories.sql_repository import SQLDocumentStorage

logger = logging.getLogger(__name__)


class DocumentStorage(Protocol):
    def initialize(self) -> None: ...

    def load(self) -> Database: ...

    def save(self, db: Database) -> None: ...


class StateStore:
    def __init__(self, storage: DocumentStorage):
        self.storage = storage
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Yield a fresh copy of the document and persist it on clean exit."""
        with self._lock:
            db = self.storage.load()
            yield db
            self.storage.save(db)

    @contextmanager
    def snapshot(self) -> Iterator[Database]:
        """Yield a fresh copy of the document for read-only use."""
        with self._lock:
            yield self.storage.load()


def build_storage(settings: Settings) -> DocumentStorage:
    backend = settings.storage_backend
    if backend == "json":
        return JsonDocumentStorage(settings.data_file)
    if backend == "sql":
        return SQLDocumentStorage()
    raise RuntimeError(f"Unknown STORAGE_BACKEND {backend!r}; expected 'json' or 'sql'.")


@lru_cache
def get_store() -> StateStore:
    settings = get_settings()
    storage = build_storage(settings)
    storage.initialize()
    logger.info("State store ready (backend=%s)", settings.storage_backend)
    return StateStore(storage)
