"""
Analysis orchestrator.

Flow for one analyze request:
  1. Resolve documents (NotFound when none resolve)
  2. Optional OCR recovery for weak PDFs (ENABLE_OCR_RECOVERY_ON_ANALYZE)
  3. Combined signal ≥ MIN_ANALYSIS_SIGNAL → text mode, else multimodal mode
     (raw PDFs attached, InsufficientContent when nothing can be attached)
  4. Prompt → Gemini → lenient JSON parse → normalize
  5. Optional single stricter retry when the result is underfilled
  6. Store the run
"""

import logging
from typing import Optional, Sequence

from ..core.config import Settings
from ..core.errors import InsufficientContentError, NotFoundError
from ..core.flags import FeatureFlags
from ..core.storage import StorageBackend
from ..models.document import Document
from ..models.result import AnalysisResult, AnalysisRun
from .extraction import ocr_extract
from .gemini import DocumentPart, GeminiClient
from .json_output import parse_model_json
from .normalizer import is_underfilled, normalize_result
from .quota import classify_quota_error
from .stores import DocumentStore, RunStore
from .text import normalize_extracted_text, signal_length

logger = logging.getLogger(__name__)

DOCUMENT_SEPARATOR = "\n\n---\n\n"
DETAIL_PREVIEW_CHARS = 120

# Prompt-level thresholds (raw character counts, not signal length)
MIN_PROMPT_TEXT_CHARS = 10
LOW_SIGNAL_PROMPT_CHARS = 400
# Two model calls at most: the first answer plus one stricter retry.
MAX_MODEL_ATTEMPTS = 2

NO_TEXT_PLACEHOLDER = (
    "No reliable extracted transcript text is available. "
    "Analyze the attached source document files directly."
)
RETRY_INSTRUCTION = (
    "Important: Fill all sections with transcript-grounded facts "
    "and include citations when present."
)
INSUFFICIENT_CONTENT_MESSAGE = (
    "No readable transcript content found after extraction and OCR fallback, "
    "and source files could not be attached for multimodal analysis."
)


class Analyzer:
    """Runs the analysis pipeline over documents from the document store."""

    def __init__(
        self,
        *,
        settings: Settings,
        flags: FeatureFlags,
        documents: DocumentStore,
        runs: RunStore,
        storage: StorageBackend,
        llm: GeminiClient,
    ):
        self.settings = settings
        self.flags = flags
        self.documents = documents
        self.runs = runs
        self.storage = storage
        self.llm = llm

    async def analyze(self, document_ids: Sequence[str]) -> tuple[AnalysisRun, list[Document]]:
        """Analyze the given documents. Returns the stored run and the documents used."""
        selected = self.documents.get_many(list(document_ids))
        if not selected:
            raise NotFoundError("No matching documents found")

        if self.flags.enable_ocr_recovery_on_analyze:
            await self.recover_weak_pdfs(selected)

        extracted_only = "\n\n".join(doc.text or "" for doc in selected)
        low_signal = signal_length(extracted_only) < self.settings.min_analysis_signal

        if low_signal:
            analysis_text = extracted_only
            parts = await self.build_document_parts(selected)
            if not any(part.is_attachment for part in parts):
                raise InsufficientContentError(
                    INSUFFICIENT_CONTENT_MESSAGE,
                    details=[_diagnostics(doc) for doc in selected],
                )
            logger.info(
                "Multimodal analysis: %d docs, %d attachments",
                len(selected), sum(1 for p in parts if p.is_attachment),
            )
        else:
            analysis_text = build_combined_text(selected, self.settings.max_input_chars)
            parts = []
            logger.info("Text analysis: %d docs, %d chars", len(selected), len(analysis_text))

        result = await self.run_model(analysis_text, parts)

        run = AnalysisRun(
            document_ids=[doc.id for doc in selected],
            document_names=[doc.name for doc in selected],
            result=result,
        )
        self.runs.put(run)
        logger.info("Analysis run stored: %s (tone=%s)", run.run_id, result.tone)
        return run, selected

    # ── OCR recovery ─────────────────────────────────────────────────

    async def recover_weak_pdfs(self, selected: Sequence[Document]) -> None:
        """Re-read weak PDFs through Gemini OCR. One failure never blocks the rest."""
        threshold = self.settings.min_analysis_signal
        weak = [doc for doc in selected if doc.is_pdf and signal_length(doc.text) < threshold]

        for doc in weak:
            try:
                raw = await self.get_document_bytes(doc)
                if not raw:
                    continue
                try:
                    ocr_text = await ocr_extract(raw, llm=self.llm, settings=self.settings)
                except Exception as e:
                    logger.warning("OCR failed for %s: %s", doc.name, e)
                    ocr_text = ""

                text = normalize_extracted_text(ocr_text)
                if not text:
                    continue
                self.documents.update_text(doc.id, text)
                logger.info("OCR recovered %s: %d chars", doc.name, len(text))
            except Exception as e:
                logger.warning("OCR recovery failed for %s: %s", doc.name, e)

    # ── Multimodal parts ─────────────────────────────────────────────

    async def build_document_parts(self, selected: Sequence[Document]) -> list[DocumentPart]:
        """Attach raw PDFs (capped in count and size). Failing documents are skipped."""
        parts: list[DocumentPart] = []
        pdfs = [doc for doc in selected if doc.is_pdf][: self.settings.max_multimodal_docs]

        for doc in pdfs:
            try:
                raw = await self.get_document_bytes(doc)
                if not raw:
                    continue
                if len(raw) > self.settings.max_multimodal_bytes:
                    logger.warning(
                        "Skipping %s for multimodal: %d bytes over limit", doc.name, len(raw)
                    )
                    continue
                parts.append(DocumentPart.from_text(f"Source Document: {doc.name}"))
                parts.append(DocumentPart.from_file(raw, "application/pdf"))
            except Exception as e:
                logger.warning("Multimodal part build failed for %s: %s", doc.name, e)

        return parts

    async def get_document_bytes(self, doc: Document) -> Optional[bytes]:
        """Raw file bytes: the copy kept at upload, else a download from storage."""
        if doc.source_for_analysis is not None:
            return doc.source_for_analysis.to_bytes()
        return await self.storage.download(doc.storage)

    # ── Model call ───────────────────────────────────────────────────

    async def run_model(self, combined_text: str, parts: Sequence[DocumentPart] = ()) -> AnalysisResult:
        cleaned = (combined_text or "").strip()
        has_text = len(cleaned) >= MIN_PROMPT_TEXT_CHARS
        has_docs = any(part.is_attachment for part in parts)

        if not has_text and not has_docs:
            raise InsufficientContentError(
                "Transcript extraction returned too little text. "
                "Upload a text-based transcript (PDF/DOCX/TXT with selectable text)."
            )

        prompt = build_prompt(
            cleaned if has_text else NO_TEXT_PLACEHOLDER,
            low_signal=not has_text or len(cleaned) < LOW_SIGNAL_PROMPT_CHARS,
            has_attached_docs=has_docs,
        )

        result = None
        for attempt in range(MAX_MODEL_ATTEMPTS):
            if attempt > 0:
                if not (self.flags.retry_on_underfilled and is_underfilled(result)):
                    break
                logger.info("Result underfilled, retrying once with stricter prompt")
                prompt = f"{prompt}\n\n{RETRY_INSTRUCTION}"
            result = normalize_result(parse_model_json(await self._generate(prompt, parts)))

        return result

    async def _generate(self, prompt: str, parts: Sequence[DocumentPart]) -> str:
        try:
            return await self.llm.generate(
                prompt,
                parts,
                model=self.settings.gemini_model,
                temperature=self.settings.analysis_temperature,
                json_output=True,
            )
        except Exception as e:
            quota = classify_quota_error(e)
            if quota is not None:
                logger.warning("Gemini rate limited (retry after %s s): %s", quota.retry_after_seconds, e)
                raise quota from e
            raise


def build_combined_text(docs: Sequence[Document], max_chars: int) -> str:
    """One "Document: <name>" block per document, joined and cut to max_chars."""
    combined = DOCUMENT_SEPARATOR.join(f"Document: {doc.name}\n{doc.text}" for doc in docs)
    return combined[:max_chars]


def _diagnostics(doc: Document) -> dict:
    return {
        "id": doc.id,
        "name": doc.name,
        "textChars": doc.text_chars,
        "textPreview": (doc.text or "")[:DETAIL_PREVIEW_CHARS],
    }


def build_prompt(transcript_text: str, *, low_signal: bool = False, has_attached_docs: bool = False) -> str:
    attached = (
        "Use attached source files as primary evidence when transcript text is weak or incomplete."
        if has_attached_docs
        else ""
    )
    short_note = (
        "Note: The transcript text provided is short. "
        "If critical data is missing, explicitly list it in missing_sections."
        if low_signal
        else ""
    )
    return f"""You are a forensic financial data extractor.

Task:
Extract precise financial metrics, guidance numbers, and strategic details from the transcript into strict JSON.
Your goal is to find the specific numbers (percentages, currency amounts, basis points) that support the narrative.
{attached}

CRITICAL RULES:
1. NO GENERIC FLUFF: Do not write "Healthy growth." Write "Volume growth up 5%".
2. FIND THE NUMBERS: If management says "margin expansion," look for the specific bps (e.g., "150-200 bps").
3. NAMED ENTITIES: Specific brand names and project names must be included.
4. DO NOT USE NULL: Unless the information is 100% absent. Dig into Q&A sections for details.
5. CITATIONS: Include source IDs in brackets like [cite: 12] when available in transcript text.
6. OUTPUT: Return strict JSON only. No markdown, no prose.

Output Schema (Strict JSON):
{{
  "tone": "optimistic|cautious|defensive|neutral|pessimistic",
  "tone_summary": "Explain the tone using specific context from the transcript.",
  "confidence": "high|medium|low",
  "key_positives": ["Fact + Number + Citation", "..."],
  "key_concerns": ["Fact + Context + Citation", "..."],
  "forward_guidance": {{
    "revenue": "Specific growth targets.",
    "margin": "EBITDA/Operating margin targets.",
    "capex": "Capital expenditure plans. If truly absent, write 'Not mentioned'.",
    "tax_rate": "Effective tax rate guidance. If truly absent, write 'Not mentioned'."
  }},
  "capacity_utilization_trends": "Supply chain, inventory, or manufacturing details.",
  "growth_initiatives": ["Strategic Move + Name", "..."],
  "evidence_quotes": [
    {{
      "quote": "Verbatim quote (40-60 words) containing a key metric or strategic intent.",
      "section": "Context (e.g., 'Acquisition Strategy' or 'Margin Guidance')"
    }}
  ],
  "missing_sections": ["Metrics explicitly searched for but not found."]
}}

{short_note}

Transcript Text:
{transcript_text}"""
