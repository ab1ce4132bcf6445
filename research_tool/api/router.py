"""
Main API router. Mounts all sub-routers under /api.
"""

from fastapi import APIRouter

router = APIRouter(prefix="/api")

SERVICE_NAME = "research-tool-backend"


# ── Health ───────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"ok": True, "service": SERVICE_NAME}


# ── Routes ───────────────────────────────────────────────────────────

from .documents import documents_router
from .analysis import analysis_router

router.include_router(documents_router)
router.include_router(analysis_router)
