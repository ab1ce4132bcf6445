"""
Data model. Everything is in memory; nothing here touches a database.
"""

from .document import Document, DocumentView, RetainedSource, StorageRef
from .result import AnalysisResult, AnalysisRun, EvidenceQuote, ForwardGuidance

__all__ = [
    "Document", "DocumentView", "RetainedSource", "StorageRef",
    "AnalysisResult", "AnalysisRun", "EvidenceQuote", "ForwardGuidance",
]
