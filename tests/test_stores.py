import threading

import pytest

from research_tool.models.document import Document, StorageRef
from research_tool.models.result import AnalysisResult, AnalysisRun
from research_tool.services.stores import DocumentStore, RunStore, _MemoryStore, get_document_store


def _doc(name: str) -> Document:
    return Document(name=name, storage=StorageRef(provider="memory", url="memory://x", key="x"))


class TestDocumentStore:
    def test_put_get_list(self) -> None:
        store = DocumentStore()
        a, b = store.put(_doc("a.txt")), store.put(_doc("b.txt"))
        assert store.get(a.id) is a
        assert store.list() == [a, b]
        assert len(store) == 2

    def test_get_unknown(self) -> None:
        assert DocumentStore().get("missing") is None

    def test_get_many_keeps_request_order_and_drops_unknown(self) -> None:
        store = DocumentStore()
        a, b = store.put(_doc("a.txt")), store.put(_doc("b.txt"))
        assert store.get_many([b.id, "nope", a.id]) == [b, a]

    def test_update_text_keeps_counts_in_sync(self) -> None:
        store = DocumentStore()
        doc = store.put(_doc("scan.pdf"))
        store.update_text(doc.id, "recovered transcript text")
        stored = store.get(doc.id)
        assert stored.text == "recovered transcript text"
        assert stored.text_chars == len("recovered transcript text")
        assert stored.text_words == 3

    def test_update_unknown_returns_none(self) -> None:
        assert DocumentStore().update_text("missing", "x") is None

    def test_global_store_is_shared(self) -> None:
        assert get_document_store() is get_document_store()


class TestMemoryStore:
    def test_base_cannot_be_instantiated(self) -> None:
        with pytest.raises(TypeError):
            _MemoryStore()

    def test_subclass_without_key_cannot_be_instantiated(self) -> None:
        class KeylessStore(_MemoryStore[str]):
            pass

        with pytest.raises(TypeError):
            KeylessStore()

    def test_len_waits_for_lock(self) -> None:
        store = DocumentStore()
        store.put(_doc("a.txt"))
        sizes = []
        reader = threading.Thread(target=lambda: sizes.append(len(store)))

        with store._lock:
            reader.start()
            reader.join(timeout=0.1)
            assert reader.is_alive()
        reader.join(timeout=1)

        assert sizes == [1]


class TestRunStore:
    def test_put_and_get(self) -> None:
        store = RunStore()
        run = store.put(AnalysisRun(document_ids=["d"], document_names=["d.txt"], result=AnalysisResult()))
        assert store.get(run.run_id) is run
        assert store.list() == [run]


class TestDocumentModel:
    def test_empty_text_has_zero_words(self) -> None:
        doc = _doc("a.txt")
        doc.set_text("")
        assert (doc.text_chars, doc.text_words) == (0, 0)

    def test_is_pdf_by_name_or_type(self) -> None:
        assert _doc("Report.PDF").is_pdf
        assert Document(name="blob", mimetype="application/pdf", storage=_doc("x").storage).is_pdf
        assert not _doc("notes.txt").is_pdf

    def test_masked_view_has_preview_only(self) -> None:
        doc = _doc("a.txt")
        doc.set_text("x" * 500)
        view = doc.masked().model_dump(by_alias=True)
        assert len(view["textPreview"]) == 220
        assert "text" not in view
        assert "sourceForAnalysis" not in view
        assert set(view) == {
            "id", "name", "mimetype", "size", "uploadedAt", "storage",
            "textChars", "textWords", "textPreview",
        }
