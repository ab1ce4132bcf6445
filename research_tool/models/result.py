"""
Analysis output. AnalysisResult is the strict, UI-safe shape produced by the
normalizer; AnalysisRun is what the run store keeps.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import CamelModel, new_uuid, utcnow

Tone = Literal["optimistic", "cautious", "defensive", "neutral", "pessimistic"]
Confidence = Literal["high", "medium", "low"]


class ForwardGuidance(BaseModel):
    revenue: Optional[str] = None
    margin: Optional[str] = None
    capex: Optional[str] = None
    tax_rate: Optional[str] = None


class EvidenceQuote(BaseModel):
    quote: str
    section: str


class AnalysisResult(BaseModel):
    tone: Tone = "neutral"
    tone_summary: Optional[str] = None
    confidence: Confidence = "low"
    key_positives: list[str] = Field(default_factory=list)
    key_concerns: list[str] = Field(default_factory=list)
    forward_guidance: ForwardGuidance = Field(default_factory=ForwardGuidance)
    capacity_utilization_trends: Optional[str] = None
    growth_initiatives: list[str] = Field(default_factory=list)
    evidence_quotes: list[EvidenceQuote] = Field(default_factory=list)
    missing_sections: list[str] = Field(default_factory=list)


class AnalysisRun(CamelModel):
    model_config = ConfigDict(frozen=True)

    run_id: str = Field(default_factory=new_uuid)
    created_at: datetime = Field(default_factory=utcnow)
    document_ids: list[str]
    document_names: list[str]
    result: AnalysisResult
