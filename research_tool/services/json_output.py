"""
Lenient JSON parsing for model output. The model is told to return strict
JSON but sometimes wraps it in markdown fences or prose.
"""

import json
import re
from typing import Any

from ..core.errors import EmptyOutputError, InvalidModelOutputError

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")
_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_model_json(raw: str) -> Any:
    """Parse a model response. Fences are stripped; prose around a single
    top-level object is tolerated.

    Raises:
        EmptyOutputError: blank response.
        InvalidModelOutputError: nothing parseable.
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        raise EmptyOutputError()

    cleaned = _TRAILING_FENCE.sub("", _LEADING_FENCE.sub("", trimmed))

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    match = _OBJECT.search(cleaned)
    if not match:
        raise InvalidModelOutputError()
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise InvalidModelOutputError() from exc
