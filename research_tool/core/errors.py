"""
Exception hierarchy. Every error that can reach the HTTP boundary inherits
from ResearchToolError and knows its own status code.
"""

from typing import Any, Optional


class ResearchToolError(Exception):
    """Base for all service errors.

    Attributes:
        message: Human-readable message, returned as ``error`` in the body.
        http_status: Status code for the HTTP response.
        details: Optional diagnostics list included in the body.
        retryable: Whether the caller may retry the same request later.
    """

    http_status = 500
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        http_status: Optional[int] = None,
        details: Optional[list[dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ResearchToolError):
    """Request body or upload failed validation."""

    http_status = 400


class UnsupportedFileTypeError(ResearchToolError):
    """File is not PDF, DOCX or TXT."""

    def __init__(self, filename: str):
        super().__init__(f"Unsupported file type for {filename}. Use PDF, DOCX, or TXT.")
        self.filename = filename


class MissingCredentialsError(ResearchToolError):
    """Credentials for an external service are not configured."""


class EmptyOutputError(ResearchToolError):
    """The model returned nothing."""

    def __init__(self, message: str = "Model returned empty output"):
        super().__init__(message)


class InvalidModelOutputError(ResearchToolError):
    """The model output could not be parsed as JSON."""

    def __init__(self, message: str = "LLM output was not valid JSON"):
        super().__init__(message)


class OcrTimeoutError(ResearchToolError):
    """Gemini OCR did not answer in time."""


class InsufficientContentError(ResearchToolError):
    """Neither usable text nor attachable files are available for analysis."""

    http_status = 400


class RateLimitedError(ResearchToolError):
    """The model provider rejected the call with a quota / rate-limit error."""

    http_status = 429
    retryable = True

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "retryAfterSeconds": self.retry_after_seconds}


class NotFoundError(ResearchToolError):
    """Unknown run or no resolvable documents."""

    http_status = 404


class UpstreamFailureError(ResearchToolError):
    """Anything else that went wrong while serving the request."""
