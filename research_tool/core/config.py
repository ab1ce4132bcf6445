"""
Central configuration. All API keys, limits and thresholds in one place.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # --- Environment ---
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")

    # --- API ---
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=3000, alias="PORT")
    cors_origins: str = Field(default="*", alias="FRONTEND_ORIGIN")

    # --- Upload limits ---
    max_file_size_bytes: int = Field(default=15 * 1024 * 1024, alias="MAX_FILE_SIZE_BYTES")
    max_upload_files: int = Field(default=10, alias="MAX_UPLOAD_FILES")

    # --- Analysis ---
    max_input_chars: int = Field(default=160_000, alias="MAX_INPUT_CHARS")
    min_analysis_signal: int = Field(default=40, alias="MIN_ANALYSIS_SIGNAL")
    # Upload-time weak-PDF threshold. Independent of min_analysis_signal.
    min_text_signal: int = Field(default=120, alias="MIN_TEXT_SIGNAL")
    max_multimodal_docs: int = Field(default=3, alias="MAX_MULTIMODAL_DOCS")
    max_multimodal_bytes: int = Field(default=15 * 1024 * 1024, alias="MAX_MULTIMODAL_BYTES")
    analysis_temperature: float = Field(default=0.2, alias="ANALYSIS_TEMPERATURE")

    # --- Gemini ---
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_ocr_model: str = Field(default="", alias="GEMINI_OCR_MODEL")
    gemini_ocr_timeout_ms: int = Field(default=45_000, alias="GEMINI_OCR_TIMEOUT_MS")

    # --- AWS S3 ---
    aws_access_key_id: str = Field(default="", alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str = Field(default="", alias="AWS_SECRET_ACCESS_KEY")
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    s3_bucket_name: str = Field(default="", alias="S3_BUCKET_NAME")

    # --- Storage layout ---
    storage_folder: str = Field(default="research-tool", alias="STORAGE_FOLDER")
    local_storage_path: str = Field(default="./local_storage", alias="LOCAL_STORAGE_PATH")

    @property
    def ocr_model(self) -> str:
        return self.gemini_ocr_model or self.gemini_model

    @property
    def ocr_timeout_seconds(self) -> float:
        return self.gemini_ocr_timeout_ms / 1000

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
