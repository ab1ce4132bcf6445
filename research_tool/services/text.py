"""
Text signal helpers shared by extraction and analysis.
"""

import re

_WHITESPACE = re.compile(r"\s+")
_HORIZONTAL_WS = re.compile(r"[ \t]+")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")


def signal_length(text: str) -> int:
    """Count of non-whitespace characters."""
    return len(_WHITESPACE.sub("", text or ""))


def is_weak(text: str, threshold: int) -> bool:
    return signal_length(text) < threshold


def normalize_extracted_text(text: str) -> str:
    """CRLF → LF, collapse spaces/tabs, at most one blank line, trimmed."""
    text = (text or "").replace("\r\n", "\n")
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _EXTRA_NEWLINES.sub("\n\n", text)
    return text.strip()
