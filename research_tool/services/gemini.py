"""
Gemini client: a thin async wrapper around the sync google-genai SDK.

Accepts a prompt plus optional DocumentParts (inline text or raw files) and
returns the model's text output.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.config import Settings, get_settings
from ..core.errors import MissingCredentialsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentPart:
    """One unit sent alongside the prompt: either text or an attached file."""

    text: Optional[str] = None
    mime_type: Optional[str] = None
    data: Optional[bytes] = None

    @classmethod
    def from_text(cls, text: str) -> "DocumentPart":
        return cls(text=text)

    @classmethod
    def from_file(cls, data: bytes, mime_type: str = "application/pdf") -> "DocumentPart":
        return cls(mime_type=mime_type, data=data)

    @property
    def is_attachment(self) -> bool:
        return self.data is not None


class GeminiClient:
    """Lazy google-genai client. One instance per process is enough."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        self._client = None

    def _get_client(self):
        if self._client is not None:
            return self._client
        api_key = self._settings.gemini_api_key
        if not api_key:
            raise MissingCredentialsError("GEMINI_API_KEY is missing")
        from google import genai

        self._client = genai.Client(api_key=api_key)
        return self._client

    def _sync_generate(
        self,
        prompt: str,
        parts: Sequence[DocumentPart],
        model: str,
        temperature: float,
        json_output: bool,
    ) -> str:
        from google.genai import types

        client = self._get_client()
        contents = [types.Part.from_text(text=prompt)]
        for part in parts:
            if part.is_attachment:
                contents.append(types.Part.from_bytes(data=part.data, mime_type=part.mime_type))
            else:
                contents.append(types.Part.from_text(text=part.text or ""))

        config_kwargs = {"temperature": temperature}
        if json_output:
            config_kwargs["response_mime_type"] = "application/json"
        config = types.GenerateContentConfig(**config_kwargs)

        start = time.monotonic()
        response = client.models.generate_content(
            model=model,
            contents=[types.Content(role="user", parts=contents)],
            config=config,
        )
        logger.info(
            "Gemini %s: %dms | parts=%d | json=%s",
            model, int((time.monotonic() - start) * 1000), len(contents), json_output,
        )
        return response.text or ""

    async def generate(
        self,
        prompt: str,
        parts: Sequence[DocumentPart] = (),
        *,
        model: Optional[str] = None,
        temperature: float = 0.2,
        json_output: bool = False,
    ) -> str:
        """Run one generate_content call off the event loop. Returns raw text."""
        return await asyncio.to_thread(
            self._sync_generate,
            prompt,
            list(parts),
            model or self._settings.gemini_model,
            temperature,
            json_output,
        )
