"""
JSON generation metadata (NovelAI and Stable Diffusion style comment blobs).
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from ...config import MAX_METADATA_JSON_SIZE
from ...shared import get_logger
from .fields import AiFieldsBuilder

logger = get_logger(__name__)

JsonRule = Tuple[Tuple[str, ...], str]

# NovelAI is applied first so its keys win over the SD-style ones below.
NOVELAI_JSON_RULES: Tuple[JsonRule, ...] = (
    (("prompt",), "prompt"),
    (("uc",), "negative_prompt"),
    (("steps",), "steps"),
    (("sampler",), "sampler"),
    (("scale",), "cfg_scale"),
    (("seed",), "seed"),
    (("v4_negative_prompt", "caption", "base_caption"), "negative_prompt"),
)

SD_JSON_RULES: Tuple[JsonRule, ...] = (
    (("negative_prompt",), "negative_prompt"),
    (("cfg_scale",), "cfg_scale"),
    (("model",), "model"),
    (("steps",), "steps"),
    (("sampler",), "sampler"),
    (("seed",), "seed"),
)


def try_parse_json_object(text: Any) -> Optional[Dict[str, Any]]:
    """
    Decode `text` as a JSON object.

    Returns None for anything that is not a JSON object (plain prompts, bare
    numbers, arrays). A JSON string holding an object is unwrapped once.
    """
    if not isinstance(text, str):
        return None
    raw = text.strip()
    if not raw or len(raw) > MAX_METADATA_JSON_SIZE:
        return None
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    if isinstance(parsed, str):
        try:
            parsed = json.loads(parsed)
        except (ValueError, RecursionError):
            return None
    return parsed if isinstance(parsed, dict) else None


def _dig(data: Dict[str, Any], path: Tuple[str, ...]) -> Any:
    node: Any = data
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _json_value(value: Any) -> Any:
    # Nested objects are not displayable field values
    if isinstance(value, dict):
        return None
    if isinstance(value, list):
        items = [v for v in value if isinstance(v, (str, int, float)) and not isinstance(v, bool)]
        return items or None
    return value


def apply_json_rules(data: Dict[str, Any], rules: Tuple[JsonRule, ...], target: AiFieldsBuilder) -> AiFieldsBuilder:
    for path, field in rules:
        target.merge_if_absent(field, _json_value(_dig(data, path)))
    return target


def apply_json_metadata(data: Dict[str, Any], target: Optional[AiFieldsBuilder] = None) -> AiFieldsBuilder:
    """Apply NovelAI keys, then fill the remaining gaps from SD-style keys."""
    if target is None:
        target = AiFieldsBuilder()
    apply_json_rules(data, NOVELAI_JSON_RULES, target)
    apply_json_rules(data, SD_JSON_RULES, target)
    logger.debug("JSON comment provided fields: %s", ", ".join(target.fields()))
    return target
