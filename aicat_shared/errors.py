"""
Client-facing error text for metadata routes.

Reader errors quote the image path they failed on; responses mask those
paths unless `AICAT_DEBUG` is set.
"""
from __future__ import annotations

import os
import re
from typing import Any

from .log import get_logger

logger = get_logger(__name__)
_DEBUG_MODE = os.getenv("AICAT_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")

_MAX_DETAIL_CHARS = 200
_PATH_MASK = "[path]"
# Windows drive, UNC share, POSIX absolute
_PATH_PATTERNS = (
    re.compile(r"[A-Za-z]:\\[^\s]+"),
    re.compile(r"\\\\[^\s\\]+\\[^\s]+"),
    re.compile(r"(?<![A-Za-z0-9:/?&=#%])/(?!/)[^\s#?]+"),
)


def _mask_paths(text: str) -> str:
    text = text.replace(os.getcwd(), "[cwd]")
    for pattern in _PATH_PATTERNS:
        text = pattern.sub(_PATH_MASK, text)
    return text


def _one_line(text: str) -> str:
    return " ".join(text.splitlines()).strip()[:_MAX_DETAIL_CHARS]


def sanitize_error_message(exc: Any, fallback: str) -> str:
    """
    Return `"<fallback>: <detail>"` for an exception or reader error string.

    The detail is flattened to one line and truncated. `fallback` alone is
    returned when there is no detail.
    """
    fallback = fallback or "An error occurred"
    raw = "" if exc is None else str(exc)
    if not raw:
        return fallback

    if _DEBUG_MODE:
        logger.debug("Unmasked error payload: %s", raw)
        detail = _one_line(raw)
    else:
        detail = _one_line(_mask_paths(raw))
    return f"{fallback}: {detail}" if detail else fallback
