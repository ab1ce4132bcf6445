"""
Rate-limit detection for Gemini errors.

Upstream only gives us free text, so this is pattern matching on the message.
Keep the test table in tests/test_quota.py in sync when formats change.
"""

import math
import re
from typing import Optional

from ..core.errors import RateLimitedError

QUOTA_MESSAGE = (
    "Gemini API quota/rate limit reached. Retry after the cooldown "
    "or use a billed API key/model with higher limits."
)

_QUOTA_PHRASES = ("quota exceeded", "too many requests", "rate limit")

# "Please retry in 50.417968038s"
_RETRY_IN = re.compile(r"retry in\s+(\d+(?:\.\d+)?)s", re.IGNORECASE)
# "retryDelay":"50s"  /  'retryDelay': '50s'  /  retryDelay\":\"50s
_RETRY_DELAY = re.compile(
    r"""retryDelay\\?["']?\s*:\s*\\?["'](\d+(?:\.\d+)?)s""", re.IGNORECASE
)


def is_quota_message(message: str) -> bool:
    lower = message.lower()
    return "429" in message or any(phrase in lower for phrase in _QUOTA_PHRASES)


def extract_retry_after_seconds(message: str) -> Optional[int]:
    """Seconds to wait, rounded up, or None when the message has no hint."""
    if not message:
        return None

    match = _RETRY_IN.search(message)
    if match:
        return max(1, math.ceil(float(match.group(1))))

    match = _RETRY_DELAY.search(message)
    if match:
        return max(1, math.ceil(float(match.group(1))))

    return None


def classify_quota_error(exc: BaseException) -> Optional[RateLimitedError]:
    """Return a RateLimitedError when exc looks like a quota / 429 failure."""
    message = str(exc or "")
    if getattr(exc, "code", None) != 429 and not is_quota_message(message):
        return None
    return RateLimitedError(QUOTA_MESSAGE, extract_retry_after_seconds(message))
