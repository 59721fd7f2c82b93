"""Normalization of raw model text before JSON parsing.

Two narrow transforms, one per observed vendor failure mode:

- Gemini wraps its JSON in markdown code fences -> ``strip_code_fences``.
- OpenAI occasionally stops mid-document -> ``attempt_repair`` detects the
  truncation and leaves the text for the parser to reject.

Nothing here raises; parse failures surface in the caller.
"""

from __future__ import annotations

import json
import logging
import re

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```[\w.+-]*")
_CLOSING_FENCE = "```"


def _strip_fences_once(text: str) -> str:
    cleaned = text.strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    if cleaned.endswith(_CLOSING_FENCE):
        cleaned = cleaned[: -len(_CLOSING_FENCE)]
    return cleaned.strip()


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang opener and a trailing ``` closer, then trim.

    Applied until the text stops changing, so a second call is a no-op.
    """
    cleaned = _strip_fences_once(text)
    while True:
        again = _strip_fences_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


def attempt_repair(text: str) -> str:
    """Return text unchanged when it already parses or looks truncated.

    Text that fails to parse but ends with ``}`` or ``]`` is returned trimmed.
    A missing closing brace is never patched in.
    """
    try:
        json.loads(text)
        return text
    except ValueError:
        logger.debug("JSON parse failed, attempting repair")

    trimmed = text.strip()
    if not trimmed.endswith(("}", "]")):
        logger.warning("Response appears truncated - missing closing brace")
        return text

    return trimmed


def normalize_response(provider: str, raw_text: str) -> str:
    """Pick the cleanup path for the provider that produced ``raw_text``."""
    if not raw_text:
        return raw_text
    if provider == "gemini":
        return strip_code_fences(raw_text)
    if provider == "openai":
        return attempt_repair(raw_text)
    return raw_text.strip()


def error_context(text: str, error: Exception, radius: int = 80) -> str:
    """Excerpt of ``text`` around a JSONDecodeError position, for debug logs."""
    pos = getattr(error, "pos", None)
    if pos is None:
        return text[: radius * 2]
    start = max(pos - radius, 0)
    return f"...{text[start : pos + radius]}... (offset {pos})"
