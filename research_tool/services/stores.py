"""
In-memory stores for documents and analysis runs. Process lifetime only.

Each store hides its dict behind put/get/list so a persistent backend can
replace it without touching callers.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from ..models.document import Document
from ..models.result import AnalysisRun

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _MemoryStore(ABC, Generic[T]):
    def __init__(self):
        self._items: dict[str, T] = {}
        self._lock = threading.Lock()

    @abstractmethod
    def _key(self, item: T) -> str:
        """Id the item is stored under."""
        ...

    def put(self, item: T) -> T:
        with self._lock:
            self._items[self._key(item)] = item
        return item

    def get(self, item_id: str) -> Optional[T]:
        with self._lock:
            return self._items.get(item_id)

    def list(self) -> list[T]:
        """All items in insertion order."""
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class DocumentStore(_MemoryStore[Document]):
    """Uploaded documents by id."""

    def _key(self, item: Document) -> str:
        return item.id

    def get_many(self, ids: list[str]) -> list[Document]:
        """Resolve ids in request order, silently dropping unknown ones."""
        with self._lock:
            return [self._items[i] for i in ids if i in self._items]

    def update_text(self, doc_id: str, text: str) -> Optional[Document]:
        """Overwrite a document's text in place (OCR recovery)."""
        with self._lock:
            doc = self._items.get(doc_id)
            if doc is not None:
                doc.set_text(text)
        if doc is None:
            logger.warning("update_text: unknown document %s", doc_id)
        return doc


class RunStore(_MemoryStore[AnalysisRun]):
    """Finished analysis runs by run id."""

    def _key(self, item: AnalysisRun) -> str:
        return item.run_id


# ── Global stores ────────────────────────────────────────────────────

_documents: Optional[DocumentStore] = None
_runs: Optional[RunStore] = None


def get_document_store() -> DocumentStore:
    global _documents
    if _documents is None:
        _documents = DocumentStore()
    return _documents


def get_run_store() -> RunStore:
    global _runs
    if _runs is None:
        _runs = RunStore()
    return _runs
