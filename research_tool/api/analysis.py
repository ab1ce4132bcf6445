"""
Analysis endpoints.

POST /api/analyze              run the analysis over uploaded documents
GET  /api/result/{run_id}      full run as JSON
GET  /api/result/{run_id}/csv  run as a CSV attachment
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..core.dependencies import get_analyzer
from ..core.errors import NotFoundError, ResearchToolError, UpstreamFailureError, ValidationError
from ..models.base import CamelModel
from ..models.document import DocumentView
from ..models.result import AnalysisResult, AnalysisRun
from ..services.analyzer import Analyzer
from ..services.csv_export import build_result_csv
from ..services.stores import RunStore, get_run_store

logger = logging.getLogger(__name__)

analysis_router = APIRouter(tags=["analysis"])


class AnalyzeRequest(CamelModel):
    document_ids: Optional[list[str]] = None


class AnalyzeResponse(CamelModel):
    run_id: str
    result: AnalysisResult
    documents: list[DocumentView]


@analysis_router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    request: Optional[AnalyzeRequest] = None,
    analyzer: Analyzer = Depends(get_analyzer),
):
    if request is None or not request.document_ids:
        raise ValidationError("documentIds must be a non-empty array")

    try:
        run, selected = await analyzer.analyze(request.document_ids)
    except ResearchToolError:
        raise
    except Exception as e:
        logger.exception("Analysis failed")
        raise UpstreamFailureError(str(e) or "Analysis failed") from e

    return AnalyzeResponse(
        run_id=run.run_id,
        result=run.result,
        documents=[doc.masked() for doc in selected],
    )


@analysis_router.get("/result/{run_id}", response_model=AnalysisRun)
async def get_result(run_id: str, runs: RunStore = Depends(get_run_store)):
    return _get_run(runs, run_id)


@analysis_router.get("/result/{run_id}/csv")
async def get_result_csv(run_id: str, runs: RunStore = Depends(get_run_store)):
    run = _get_run(runs, run_id)
    return Response(
        content=build_result_csv(run),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=option-b-{run.run_id}.csv"},
    )


def _get_run(runs: RunStore, run_id: str) -> AnalysisRun:
    run = runs.get(run_id)
    if run is None:
        raise NotFoundError("Run not found")
    return run
