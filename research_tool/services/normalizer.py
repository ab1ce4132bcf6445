"""
Result normalizer. Coerces whatever JSON the model produced into a fully
shaped AnalysisResult. Wrong types, missing keys and placeholder strings are
all tolerated; the output always validates.
"""

from typing import Any, Optional

from ..models.result import AnalysisResult, EvidenceQuote, ForwardGuidance

TONES = ("optimistic", "cautious", "defensive", "neutral", "pessimistic")
CONFIDENCE_LEVELS = ("high", "medium", "low")

MAX_LIST_ITEMS = 6
MAX_MISSING_SECTIONS = 12
MAX_EVIDENCE_QUOTES = 8
MIN_QUOTE_CHARS = 10

NO_QUOTE = EvidenceQuote(quote="No direct quote extracted", section="N/A")

_NULL_MARKERS = {"null", "not mentioned"}
_GUIDANCE_FIELDS = ("revenue", "margin", "capex", "tax_rate")


def normalize_result(data: Any) -> AnalysisResult:
    """Build an AnalysisResult from any decoded JSON value."""
    if isinstance(data, AnalysisResult):
        data = data.model_dump()
    if not isinstance(data, dict):
        data = {}

    guidance = data.get("forward_guidance")
    if not isinstance(guidance, dict):
        guidance = {}

    return AnalysisResult(
        tone=_pick(data.get("tone"), TONES, "neutral"),
        tone_summary=_nullable_string(data.get("tone_summary")),
        confidence=_pick(data.get("confidence"), CONFIDENCE_LEVELS, "low"),
        key_positives=_string_list(data.get("key_positives"), MAX_LIST_ITEMS),
        key_concerns=_string_list(data.get("key_concerns"), MAX_LIST_ITEMS),
        forward_guidance=ForwardGuidance(
            **{name: _nullable_string(guidance.get(name)) for name in _GUIDANCE_FIELDS}
        ),
        capacity_utilization_trends=_nullable_string(data.get("capacity_utilization_trends")),
        growth_initiatives=_string_list(data.get("growth_initiatives"), MAX_LIST_ITEMS),
        evidence_quotes=_evidence(data.get("evidence_quotes")),
        missing_sections=_string_list(data.get("missing_sections"), MAX_MISSING_SECTIONS),
    )


def is_underfilled(result: AnalysisResult) -> bool:
    """At least two of the three narrative lists are empty and there is no guidance at all."""
    empty_lists = sum(
        1
        for items in (result.key_positives, result.key_concerns, result.growth_initiatives)
        if not items
    )
    guidance = result.forward_guidance
    no_guidance = all(getattr(guidance, name) is None for name in _GUIDANCE_FIELDS)
    return empty_lists >= 2 and no_guidance


# ── Field coercion ───────────────────────────────────────────────────

def _pick(value: Any, allowed: tuple[str, ...], default: str) -> str:
    return value if isinstance(value, str) and value in allowed else default


def _nullable_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() in _NULL_MARKERS:
        return None
    return cleaned


def _string_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [item.strip() for item in value if isinstance(item, str)]
    return [item for item in items if item][:limit]


def _as_text(value: Any) -> Optional[str]:
    # bools are ints in Python; a quote of True is not a quote.
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int, float)):
        return str(value).strip()
    return None


def _evidence(value: Any) -> list[EvidenceQuote]:
    cleaned: list[EvidenceQuote] = []
    for item in value if isinstance(value, list) else []:
        if not isinstance(item, dict):
            continue
        quote = _as_text(item.get("quote"))
        section = _as_text(item.get("section"))
        if quote is None or section is None or len(quote) <= MIN_QUOTE_CHARS:
            continue
        cleaned.append(EvidenceQuote(quote=quote, section=section))
        if len(cleaned) == MAX_EVIDENCE_QUOTES:
            break

    return cleaned or [NO_QUOTE.model_copy()]
