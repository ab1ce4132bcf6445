"""
Text extraction from uploaded documents.
- plain text passthrough for .txt
- pdfplumber for PDFs (failures → empty text, OCR can recover later)
- python-docx for DOCX
- Gemini OCR for weak PDFs (upload-time only when ENABLE_OCR_ON_UPLOAD=true)
"""

import asyncio
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

from ..core.config import Settings
from ..core.errors import EmptyOutputError, OcrTimeoutError, UnsupportedFileTypeError
from ..core.flags import FeatureFlags
from .gemini import DocumentPart, GeminiClient
from .text import is_weak, normalize_extracted_text

logger = logging.getLogger(__name__)

OCR_INSTRUCTION = (
    "Extract all readable text from this PDF exactly as written. Return plain text only. "
    "Keep speaker names and line breaks where possible. Do not summarize."
)

DOCX_MIME = "wordprocessingml.document"


def detect_kind(filename: str, content_type: str = "") -> Optional[str]:
    """Return "txt", "pdf", "docx", or None for anything else."""
    ext = Path(filename or "").suffix.lower()
    content_type = content_type or ""
    if ext == ".txt" or "text/plain" in content_type:
        return "txt"
    if ext == ".pdf" or "pdf" in content_type:
        return "pdf"
    if ext == ".docx" or DOCX_MIME in content_type:
        return "docx"
    return None


async def extract_text(
    file_bytes: bytes,
    filename: str,
    content_type: str,
    *,
    settings: Settings,
    flags: FeatureFlags,
    llm: Optional[GeminiClient] = None,
) -> str:
    """
    Extract normalized text from an uploaded file.

    Plain text is decoded as-is. PDFs that parse to weak text are OCR'd
    right away only when the upload-time OCR flag is on.
    """
    kind = detect_kind(filename, content_type)

    if kind == "txt":
        text = file_bytes.decode("utf-8", errors="replace")

    elif kind == "pdf":
        text = extract_pdf(file_bytes, filename)
        if flags.enable_ocr_on_upload and llm is not None and is_weak(text, settings.min_text_signal):
            try:
                ocr_text = await ocr_extract(file_bytes, llm=llm, settings=settings)
            except Exception as e:
                logger.warning("Upload OCR failed for %s: %s", filename, e)
                ocr_text = ""
            if ocr_text:
                text = ocr_text

    elif kind == "docx":
        text = extract_docx(file_bytes)

    else:
        raise UnsupportedFileTypeError(filename)

    return normalize_extracted_text(text)


def extract_pdf(file_bytes: bytes, filename: str = "") -> str:
    """Extract text from PDF using pdfplumber. Failures yield ""."""
    try:
        import pdfplumber

        pages_text = []
        with pdfplumber.open(BytesIO(file_bytes)) as pdf:
            for page in pdf.pages:
                pages_text.append(page.extract_text() or "")
        return "\n\n".join(pages_text)
    except Exception as e:
        logger.warning("pdfplumber failed for %s: %s", filename or "PDF", e)
        return ""


def extract_docx(file_bytes: bytes) -> str:
    """
    Extract raw text from DOCX in body order. Table cells come out as their
    own blocks, row by row. Errors propagate.
    """
    import docx
    from docx.table import Table

    doc = docx.Document(BytesIO(file_bytes))
    blocks: list[str] = []
    for item in doc.iter_inner_content():
        if isinstance(item, Table):
            blocks.extend(_table_blocks(item))
        else:
            blocks.append(item.text)
    return "\n\n".join(blocks)


def _table_blocks(table) -> list[str]:
    blocks = []
    for row in table.rows:
        seen = set()
        for cell in row.cells:
            # Merged cells show up once per grid column they span.
            if id(cell._tc) in seen:
                continue
            seen.add(id(cell._tc))
            blocks.append(cell.text)
    return blocks


async def ocr_extract(file_bytes: bytes, *, llm: GeminiClient, settings: Settings) -> str:
    """
    Ask Gemini to transcribe a PDF verbatim. Temperature 0, bounded by
    GEMINI_OCR_TIMEOUT_MS.

    Raises on timeout, API failure or empty output. Callers treat OCR as
    best-effort and map any failure to "".
    """
    if not file_bytes:
        raise EmptyOutputError("No file bytes to OCR")

    timeout = settings.ocr_timeout_seconds
    try:
        text = await asyncio.wait_for(
            llm.generate(
                OCR_INSTRUCTION,
                [DocumentPart.from_file(file_bytes, "application/pdf")],
                model=settings.ocr_model,
                temperature=0,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        raise OcrTimeoutError(f"Gemini OCR timed out after {settings.gemini_ocr_timeout_ms}ms")

    if not (text or "").strip():
        raise EmptyOutputError("Gemini OCR returned no text")
    return text
