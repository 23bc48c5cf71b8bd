"""
Source selection and ordering for image generation metadata.

Sources are consulted from most to least trustworthy and merged with
fill-only-if-absent semantics:

1. PNG `Comment` decoded as a JSON object (NovelAI keys, then SD-style keys)
2. PNG `Comment` that is not a JSON object, parsed as free text
3. PNG `parameters` (A1111 WebUI)
4. PNG `Description`, only while no prompt is known
5. EXIF / IPTC / XMP text fields (JPEG, WebP), only while no prompt is known
6. Raw PNG `Description` / `Comment` / `Software`, kept for display

Standard camera fields come from EXIF/File tags and do not take part in the
merge.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple

from ...shared import get_logger
from .fields import STANDARD_FIELDS, AiFieldsBuilder
from .json_formats import apply_json_metadata, try_parse_json_object
from .software import normalize_software
from .tag_groups import TagGroups
from .text_parser import looks_like_generation_data, parse_text_metadata

logger = get_logger(__name__)

PNG_COMMENT = "Comment"
PNG_PARAMETERS = "parameters"
PNG_DESCRIPTION = "Description"
PNG_SOFTWARE = "Software"

# Scanned in order when no PNG source produced a prompt
EXIF_TEXT_SOURCES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("exif", ("UserComment",)),
    ("exif", ("ImageDescription",)),
    ("iptc", ("Caption", "Caption-Abstract")),
    ("xmp", ("Parameters",)),
)

# field -> (group, tag aliases)
STANDARD_TEXT_FIELDS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("camera", "exif", ("Make",)),
    ("camera_model", "exif", ("Model",)),
    ("date_taken", "exif", ("DateTime", "ModifyDate")),
    ("software", "exif", ("Software",)),
    ("artist", "exif", ("Artist",)),
)
STANDARD_INT_FIELDS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("width", "file", ("ImageWidth", "Image Width")),
    ("height", "file", ("ImageHeight", "Image Height")),
)

_SIZE_RE = re.compile(r"^\s*(\d+)\s*[x×]\s*(\d+)\s*$", re.IGNORECASE)


def parse_size(value: Any) -> Optional[Tuple[int, int]]:
    """Parse a `WIDTHxHEIGHT` string into a pair of ints."""
    if not isinstance(value, str):
        return None
    match = _SIZE_RE.match(value)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def _apply_png_comment(groups: TagGroups, builder: AiFieldsBuilder) -> None:
    comment = groups.get_text("png", PNG_COMMENT)
    if comment is None:
        return
    data = try_parse_json_object(comment)
    if data is not None:
        apply_json_metadata(data, builder)
        return
    logger.debug("PNG Comment is not a JSON object, parsing as text")
    parse_text_metadata(comment, builder)


def _apply_png_parameters(groups: TagGroups, builder: AiFieldsBuilder) -> None:
    parse_text_metadata(groups.get_text("png", PNG_PARAMETERS), builder)


def _apply_png_description(groups: TagGroups, builder: AiFieldsBuilder) -> None:
    if builder.has("prompt"):
        return
    parse_text_metadata(groups.get_text("png", PNG_DESCRIPTION), builder)


def _apply_exif_text_sources(groups: TagGroups, builder: AiFieldsBuilder) -> None:
    if builder.has("prompt"):
        return
    for index, (group, names) in enumerate(EXIF_TEXT_SOURCES):
        text = groups.get_text(group, *names)
        if text is None:
            continue
        if looks_like_generation_data(text):
            parse_text_metadata(text, builder)
            if builder.has("prompt"):
                return
        elif index == 0:
            builder.merge_if_absent("user_comment", text)


def _apply_raw_png_fields(groups: TagGroups, builder: AiFieldsBuilder) -> None:
    builder.merge_if_absent("description", groups.get_text("png", PNG_DESCRIPTION))
    builder.merge_if_absent("comment", groups.get_text("png", PNG_COMMENT))
    builder.merge_if_absent("software", normalize_software(groups.get_text("png", PNG_SOFTWARE)))


def collect_ai_fields(groups: TagGroups) -> AiFieldsBuilder:
    """Run every AI source against `groups` in priority order."""
    builder = AiFieldsBuilder()
    _apply_png_comment(groups, builder)
    _apply_png_parameters(groups, builder)
    _apply_png_description(groups, builder)
    _apply_exif_text_sources(groups, builder)
    _apply_raw_png_fields(groups, builder)
    return builder


def extract_ai_metadata(groups: TagGroups) -> Optional[Dict[str, Any]]:
    """Return the AI record, or None when no source yielded anything."""
    builder = collect_ai_fields(groups)
    return builder.to_dict() if builder else None


def extract_standard_metadata(groups: TagGroups) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {}
    for field, group, names in STANDARD_TEXT_FIELDS:
        text = groups.get_text(group, *names)
        if text is not None:
            metadata[field] = text.strip()
    for field, group, names in STANDARD_INT_FIELDS:
        number = groups.get_int(group, *names)
        if number is not None:
            metadata[field] = number
    if "software" in metadata:
        metadata["software"] = normalize_software(metadata["software"])
    return {field: metadata[field] for field in STANDARD_FIELDS if field in metadata}


def _backfill_size(metadata: Dict[str, Any], size: Any) -> None:
    if metadata.get("width") is not None or metadata.get("height") is not None:
        return
    pair = parse_size(size)
    if pair is None:
        return
    metadata["width"], metadata["height"] = pair


def build_parsed_metadata(groups: TagGroups) -> Dict[str, Any]:
    """
    Build the full record for one image: standard fields plus an `ai` key
    when at least one AI field was recovered.
    """
    metadata = extract_standard_metadata(groups)
    ai = extract_ai_metadata(groups)
    if ai:
        metadata["ai"] = ai
        _backfill_size(metadata, ai.get("size"))
    return metadata
