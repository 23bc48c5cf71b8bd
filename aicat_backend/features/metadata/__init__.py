"""Image generation metadata extraction feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .fields import AiFieldsBuilder
from .prioritizer import build_parsed_metadata, extract_ai_metadata, extract_standard_metadata
from .software import normalize_software
from .tag_groups import TagGroups, TagValue
from .text_parser import parse_text_metadata

if TYPE_CHECKING:
    from .service import MetadataService

__all__ = [
    "AiFieldsBuilder",
    "MetadataService",
    "TagGroups",
    "TagValue",
    "build_parsed_metadata",
    "extract_ai_metadata",
    "extract_standard_metadata",
    "normalize_software",
    "parse_text_metadata",
    "read_metadata",
]


def __getattr__(name: str):
    if name in ("MetadataService", "read_metadata"):
        from . import service

        return getattr(service, name)
    raise AttributeError(name)
