"""
Uploaded documents. One per source file, kept for the process lifetime.
"""

import base64
from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CamelModel, new_uuid, utcnow

PREVIEW_CHARS = 220


class StorageRef(CamelModel):
    """Where the raw file lives in remote storage."""

    provider: str
    url: str
    key: str


class RetainedSource(CamelModel):
    """Raw upload kept in memory for multimodal fallback (weak PDFs only)."""

    mime_type: str
    data: str  # base64

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "RetainedSource":
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class DocumentView(CamelModel):
    """Masked document returned by the API. No full text, no raw bytes."""

    id: str
    name: str
    mimetype: str
    size: int
    uploaded_at: datetime
    storage: StorageRef
    text_chars: int = 0
    text_words: int = 0
    text_preview: str = ""


class Document(CamelModel):
    id: str = Field(default_factory=new_uuid)
    name: str
    mimetype: str = ""
    size: int = 0
    uploaded_at: datetime = Field(default_factory=utcnow)
    storage: StorageRef
    text: str = ""
    text_chars: int = 0
    text_words: int = 0
    source_for_analysis: Optional[RetainedSource] = None

    def set_text(self, text: str) -> None:
        """Replace the extracted text and keep the derived counts in sync."""
        self.text = text
        self.text_chars = len(text)
        self.text_words = len(text.split())

    @property
    def is_pdf(self) -> bool:
        return self.name.lower().endswith(".pdf") or "pdf" in (self.mimetype or "")

    def masked(self) -> DocumentView:
        return DocumentView(
            id=self.id,
            name=self.name,
            mimetype=self.mimetype,
            size=self.size,
            uploaded_at=self.uploaded_at,
            storage=self.storage,
            text_chars=self.text_chars,
            text_words=self.text_words,
            text_preview=self.text[:PREVIEW_CHARS],
        )
