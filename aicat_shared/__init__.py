"""Shared utilities for the AI Tools Catalog."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, log_success, request_id_var
from .result import Result
from .types import ErrorCode, FileKind, MetadataQuality, ReaderMode, classify_file

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "FileKind",
    "MetadataQuality",
    "ErrorCode",
    "ReaderMode",
    "classify_file",
    "sanitize_error_message",
]
