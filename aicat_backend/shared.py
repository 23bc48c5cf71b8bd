"""Backend-facing alias for shared utilities."""

from __future__ import annotations

from aicat_shared import (
    ErrorCode,
    FileKind,
    MetadataQuality,
    ReaderMode,
    Result,
    classify_file,
    get_logger,
    log_structured,
    log_success,
    request_id_var,
    sanitize_error_message,
)

__all__ = [
    "Result",
    "ErrorCode",
    "ReaderMode",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "classify_file",
    "FileKind",
    "MetadataQuality",
    "sanitize_error_message",
]
