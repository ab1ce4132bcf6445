"""
Central feature flags. One file controls every optional behavior.

Set via environment variables or .env file.
When a flag is OFF, the system takes the cheaper path. Nothing crashes.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # ── OCR ──────────────────────────────────────────────────────────
    enable_ocr_on_upload: bool = Field(default=False, alias="ENABLE_OCR_ON_UPLOAD")
    # ON  → Weak PDFs are sent to Gemini OCR during upload (slower uploads).
    # OFF → Parsed text is stored as-is. Recovery can still happen on analyze.

    enable_ocr_recovery_on_analyze: bool = Field(
        default=False, alias="ENABLE_OCR_RECOVERY_ON_ANALYZE"
    )
    # ON  → Weak PDFs selected for analysis are re-read via Gemini OCR first.
    # OFF → Weak PDFs go straight to multimodal analysis.

    # ── Analyzer ─────────────────────────────────────────────────────
    retry_on_underfilled: bool = Field(default=False, alias="ANALYZER_RETRY_ON_UNDERFILLED")
    # ON  → One stricter retry when the result is mostly empty.
    # OFF → First normalized result is returned.

    # ── Storage ──────────────────────────────────────────────────────
    use_s3: bool = Field(default=True, alias="FF_USE_S3")
    # ON  → Files go to AWS S3. Needs AWS creds + S3_BUCKET_NAME.
    # OFF → Files saved under LOCAL_STORAGE_PATH. Returns local paths.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
