"""
CSV rendering of an analysis run: one key/value row per field, then one row
per list item. Row order is fixed.
"""

import csv
import io
from typing import Optional

from ..models.result import AnalysisRun

NOT_MENTIONED = "Not mentioned"


def _value_or_na(value: Optional[str]) -> str:
    return NOT_MENTIONED if value is None else value


def build_rows(run: AnalysisRun) -> list[tuple[str, str]]:
    result = run.result
    guidance = result.forward_guidance

    rows = [
        ("Run ID", run.run_id),
        ("Created At", _iso(run)),
        ("Documents", " | ".join(run.document_names)),
        ("Tone", result.tone),
        ("Tone Summary", _value_or_na(result.tone_summary)),
        ("Confidence", result.confidence),
        ("Guidance - Revenue", _value_or_na(guidance.revenue)),
        ("Guidance - Margin", _value_or_na(guidance.margin)),
        ("Guidance - Capex", _value_or_na(guidance.capex)),
        ("Guidance - Tax Rate", _value_or_na(guidance.tax_rate)),
        ("Capacity Utilization Trend", _value_or_na(result.capacity_utilization_trends)),
    ]

    for label, items in (
        ("Key Positive", result.key_positives),
        ("Key Concern", result.key_concerns),
        ("Growth Initiative", result.growth_initiatives),
        ("Missing Section", result.missing_sections),
    ):
        rows.extend((f"{label} {i}", value) for i, value in enumerate(items, start=1))

    rows.extend(
        (f"Evidence {i}", f"{ev.quote} (Source: {ev.section})")
        for i, ev in enumerate(result.evidence_quotes, start=1)
    )
    return rows


def build_result_csv(run: AnalysisRun) -> str:
    """Render a run as CSV text. Rows joined by "\\n", no trailing newline."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerows(build_rows(run))
    return buf.getvalue().rstrip("\n")


def _iso(run: AnalysisRun) -> str:
    # Same representation as the JSON view of the run.
    return run.model_dump(mode="json", by_alias=True)["createdAt"]
