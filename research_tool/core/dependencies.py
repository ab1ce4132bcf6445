"""
FastAPI dependencies. Injected into route handlers.
"""

from typing import Optional

from fastapi import Depends

from .config import Settings, get_settings
from .flags import FeatureFlags, get_flags
from .storage import StorageBackend, get_storage
from ..services.analyzer import Analyzer
from ..services.gemini import GeminiClient
from ..services.stores import DocumentStore, RunStore, get_document_store, get_run_store

_llm_client: Optional[GeminiClient] = None
_storage: Optional[StorageBackend] = None


def get_llm_client() -> GeminiClient:
    """Shared Gemini client (lazy SDK init on first call)."""
    global _llm_client
    if _llm_client is None:
        _llm_client = GeminiClient(get_settings())
    return _llm_client


def get_storage_dep() -> StorageBackend:
    """Returns the active storage backend (S3 or local)."""
    global _storage
    if _storage is None:
        _storage = get_storage(get_settings())
    return _storage


def get_analyzer(
    settings: Settings = Depends(get_settings),
    flags: FeatureFlags = Depends(get_flags),
    documents: DocumentStore = Depends(get_document_store),
    runs: RunStore = Depends(get_run_store),
    storage: StorageBackend = Depends(get_storage_dep),
    llm: GeminiClient = Depends(get_llm_client),
) -> Analyzer:
    return Analyzer(
        settings=settings,
        flags=flags,
        documents=documents,
        runs=runs,
        storage=storage,
        llm=llm,
    )
