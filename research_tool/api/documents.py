"""
Document endpoints.

GET  /api/documents list uploaded documents (masked view)
POST /api/upload    multipart upload, field "files" (PDF, DOCX, TXT)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from ..core.config import Settings, get_settings
from ..core.dependencies import get_llm_client, get_storage_dep
from ..core.errors import ResearchToolError, UpstreamFailureError, ValidationError
from ..core.flags import FeatureFlags, get_flags
from ..core.storage import StorageBackend
from ..models.document import Document, DocumentView, RetainedSource
from ..services.extraction import extract_text
from ..services.gemini import GeminiClient
from ..services.stores import DocumentStore, get_document_store
from ..services.text import signal_length

logger = logging.getLogger(__name__)

documents_router = APIRouter(tags=["documents"])


class DocumentListResponse(BaseModel):
    documents: list[DocumentView]


@documents_router.get("/documents", response_model=DocumentListResponse)
async def list_documents(store: DocumentStore = Depends(get_document_store)):
    """List every uploaded document, oldest first."""
    return DocumentListResponse(documents=[doc.masked() for doc in store.list()])


@documents_router.post("/upload", response_model=DocumentListResponse, status_code=201)
async def upload_documents(
    files: Optional[list[UploadFile]] = File(default=None),
    settings: Settings = Depends(get_settings),
    flags: FeatureFlags = Depends(get_flags),
    store: DocumentStore = Depends(get_document_store),
    storage: StorageBackend = Depends(get_storage_dep),
    llm: GeminiClient = Depends(get_llm_client),
):
    """
    Upload transcripts. Each file is extracted, stored remotely and added to
    the document store, one after another.
    """
    if not files:
        raise ValidationError("No files provided")
    if len(files) > settings.max_upload_files:
        raise ValidationError(f"Too many files (max {settings.max_upload_files})")

    uploaded: list[DocumentView] = []
    try:
        for file in files:
            doc = await _process_upload(file, settings, flags, storage, llm)
            store.put(doc)
            uploaded.append(doc.masked())
            logger.info(
                "Document uploaded: %s (%d chars, %d words, retained=%s)",
                doc.name, doc.text_chars, doc.text_words, doc.source_for_analysis is not None,
            )
    except ResearchToolError:
        raise
    except Exception as e:
        logger.exception("Upload failed")
        raise UpstreamFailureError(str(e) or "Upload failed") from e

    return DocumentListResponse(documents=uploaded)


async def _process_upload(
    file: UploadFile,
    settings: Settings,
    flags: FeatureFlags,
    storage: StorageBackend,
    llm: GeminiClient,
) -> Document:
    filename = file.filename or "document"
    content_type = file.content_type or ""
    file_bytes = await file.read()

    if len(file_bytes) > settings.max_file_size_bytes:
        raise ValidationError(
            f"{filename} is too large (max {settings.max_file_size_bytes // (1024 * 1024)}MB)",
            http_status=413,
        )

    text = await extract_text(
        file_bytes, filename, content_type, settings=settings, flags=flags, llm=llm
    )
    ref = await storage.upload(file_bytes, filename, content_type)

    doc = Document(name=filename, mimetype=content_type, size=len(file_bytes), storage=ref)
    doc.set_text(text)

    # Weak PDFs keep their bytes in memory so analysis can attach them without a download.
    if doc.is_pdf and signal_length(text) < settings.min_analysis_signal:
        doc.source_for_analysis = RetainedSource.from_bytes(
            file_bytes, content_type or "application/pdf"
        )
    return doc
