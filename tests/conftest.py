import asyncio
import io
import json
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from research_tool.core.config import Settings, get_settings
from research_tool.core.dependencies import get_llm_client, get_storage_dep
from research_tool.core.flags import FeatureFlags, get_flags
from research_tool.core.storage import StorageBackend
from research_tool.factory import create_app
from research_tool.models.document import Document, RetainedSource, StorageRef
from research_tool.services.analyzer import Analyzer
from research_tool.services.stores import (
    DocumentStore,
    RunStore,
    get_document_store,
    get_run_store,
)

TRANSCRIPT = (
    "Operator: Welcome to the Q3 earnings call.\n"
    "CEO: Volume growth was 7% and EBITDA margin expanded 150 bps year on year.\n"
    "CFO: We expect capex of INR 400 crore next year and a tax rate near 25%."
)

FULL_RESULT = {
    "tone": "optimistic",
    "tone_summary": "Optimistic due to rural recovery",
    "confidence": "high",
    "key_positives": ["Volume growth up 7%"],
    "key_concerns": ["Edible oil soft quarter"],
    "forward_guidance": {
        "revenue": "Double-digit growth",
        "margin": "150 bps expansion",
        "capex": "INR 400 crore",
        "tax_rate": "About 25%",
    },
    "capacity_utilization_trends": "Copra prices down 25%",
    "growth_initiatives": ["Acquired a snacking brand"],
    "evidence_quotes": [{"quote": "Volume growth was 7% this quarter", "section": "Opening"}],
    "missing_sections": [],
}

EMPTY_RESULT = {
    "tone": "neutral",
    "key_positives": [],
    "key_concerns": [],
    "growth_initiatives": [],
    "forward_guidance": {"revenue": None, "margin": None, "capex": None, "tax_rate": None},
}


class FakeLLM:
    """Stands in for GeminiClient. Replays responses in order, last one repeats."""

    def __init__(self, responses=None, error: Optional[BaseException] = None, delay: float = 0):
        self.responses = [
            r if isinstance(r, str) else json.dumps(r) for r in (responses or [FULL_RESULT])
        ]
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def generate(self, prompt, parts=(), *, model=None, temperature=0.2, json_output=False):
        self.calls.append(
            {
                "prompt": prompt,
                "parts": list(parts),
                "model": model,
                "temperature": temperature,
                "json_output": json_output,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class FakeStorage(StorageBackend):
    provider = "memory"

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.downloads: list[str] = []
        self.fail_keys: set[str] = set()

    async def upload(self, file_bytes, filename, content_type=""):
        key = f"test/{len(self.objects)}-{filename}"
        self.objects[key] = file_bytes
        return StorageRef(provider=self.provider, url=f"memory://{key}", key=key)

    async def download(self, ref):
        self.downloads.append(ref.key)
        if ref.key in self.fail_keys:
            raise RuntimeError(f"download failed for {ref.key}")
        return self.objects[ref.key]


def _pdf(lines: list[str]) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    y = 720
    for line in lines:
        c.drawString(72, y, line)
        y -= 18
    c.save()
    return buf.getvalue()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        storage_folder="test",
    )


@pytest.fixture()
def flags() -> FeatureFlags:
    return FeatureFlags(_env_file=None, use_s3=False)


@pytest.fixture()
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture()
def documents() -> DocumentStore:
    return DocumentStore()


@pytest.fixture()
def runs() -> RunStore:
    return RunStore()


@pytest.fixture()
def make_analyzer(settings, flags, documents, runs, storage, llm):
    def _make(**overrides) -> Analyzer:
        kwargs = dict(
            settings=settings,
            flags=flags,
            documents=documents,
            runs=runs,
            storage=storage,
            llm=llm,
        )
        kwargs.update(overrides)
        return Analyzer(**kwargs)

    return _make


@pytest.fixture()
def add_document(documents, storage):
    """Put a document into the store (and its bytes into fake storage)."""

    def _add(name: str, text: str, raw: bytes = b"", mimetype: str = "", retain: bool = False) -> Document:
        key = f"test/{name}"
        storage.objects[key] = raw
        doc = Document(
            name=name,
            mimetype=mimetype,
            size=len(raw),
            storage=StorageRef(provider=storage.provider, url=f"memory://{key}", key=key),
        )
        doc.set_text(text)
        if retain:
            doc.source_for_analysis = RetainedSource.from_bytes(raw, mimetype or "application/pdf")
        return documents.put(doc)

    return _add


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Single-page PDF with a short line of text (weak signal)."""
    return _pdf(["Hello PDF World"])


@pytest.fixture()
def rich_pdf_bytes() -> bytes:
    """PDF with enough text to clear every signal threshold."""
    return _pdf(
        [
            "Operator: Welcome to the third quarter earnings call.",
            "CEO: Volume growth was seven percent across the portfolio.",
            "CFO: EBITDA margin expanded by one hundred and fifty basis points.",
            "CFO: Capital expenditure next year is planned at four hundred crore.",
        ]
    )


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Valid PDF with a blank page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def docx_bytes() -> bytes:
    import docx

    document = docx.Document()
    document.add_paragraph("CEO: Revenue grew 12% in the quarter.")
    document.add_paragraph("CFO: Margins held steady.")
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


@pytest.fixture()
def app(settings, flags, documents, runs, storage, llm):
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_flags] = lambda: flags
    app.dependency_overrides[get_document_store] = lambda: documents
    app.dependency_overrides[get_run_store] = lambda: runs
    app.dependency_overrides[get_storage_dep] = lambda: storage
    app.dependency_overrides[get_llm_client] = lambda: llm
    return app


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)
