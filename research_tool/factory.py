"""
FastAPI application factory.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.errors import RateLimitedError, ResearchToolError
from .api.router import router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Research Tool",
        description="Transcript upload and structured financial analysis",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    origins = settings.allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ───────────────────────────────────────────────────
    @app.exception_handler(ResearchToolError)
    async def handle_service_error(request: Request, exc: ResearchToolError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        headers = None
        if isinstance(exc, RateLimitedError) and exc.retry_after_seconds is not None:
            headers = {"Retry-After": str(exc.retry_after_seconds)}
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=400,
            content={"error": f"{location}: {message}" if location else message},
        )

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logger.info("Starting research tool (env=%s)", settings.env)

        from .core.flags import get_flags
        flags = get_flags()
        logger.info(
            "Flags: s3=%s ocr_on_upload=%s ocr_on_analyze=%s retry_underfilled=%s",
            flags.use_s3, flags.enable_ocr_on_upload,
            flags.enable_ocr_recovery_on_analyze, flags.retry_on_underfilled,
        )
        logger.info(
            "Thresholds: analysis_signal=%d text_signal=%d max_input_chars=%d model=%s",
            settings.min_analysis_signal, settings.min_text_signal,
            settings.max_input_chars, settings.gemini_model,
        )

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
