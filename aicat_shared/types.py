"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final, Literal

# File type classifications
FileKind = Literal["image", "unknown"]

# Metadata quality levels
MetadataQuality = Literal["full", "partial", "degraded", "none"]


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"

    # Feature / service availability
    UNSUPPORTED = "UNSUPPORTED"
    TOOL_MISSING = "TOOL_MISSING"

    # Infrastructure
    TIMEOUT = "TIMEOUT"

    # Operation errors
    METADATA_FAILED = "METADATA_FAILED"

    # Tool / parsing
    EXIFTOOL_ERROR = "EXIFTOOL_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


# Image extensions the catalog browses
EXTENSIONS: Final[dict[FileKind, set[str]]] = {
    "image": {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp"},
    "unknown": set(),
}


class ReaderMode(str, Enum):
    """Container reader selection."""
    AUTO = "auto"           # ExifTool when available, Pillow otherwise
    EXIFTOOL = "exiftool"   # ExifTool only
    PILLOW = "pillow"       # Pillow only


def classify_file(filename: str) -> FileKind:
    """
    Classify file by extension.

    Args:
        filename: File name or path

    Returns:
        File kind (image, unknown)
    """
    ext = os.path.splitext(filename)[1].lower()

    for kind, exts in EXTENSIONS.items():
        if ext in exts:
            return kind

    return "unknown"
