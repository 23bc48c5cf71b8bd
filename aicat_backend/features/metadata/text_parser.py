"""
Free-form generation parameter parser (A1111 / NovelAI text blocks).

Each recognized field is one row of `TEXT_FIELD_RULES`; rows are matched
independently, so a malformed label only costs that one field. Supporting a
new label is a new row, not new code.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .fields import AiFieldsBuilder

_FLAGS = re.IGNORECASE | re.DOTALL

_GENERATION_DATA_RE = re.compile(r"prompt|Steps:|Negative prompt:", re.IGNORECASE)


def _group_text(match: re.Match) -> Optional[str]:
    value = match.group(1)
    return value.strip() if value is not None else None


def _size_text(match: re.Match) -> str:
    return f"{match.group(1)}x{match.group(2)}"


def _quoted_or_line(match: re.Match) -> Optional[str]:
    quoted, bare = match.group(1), match.group(2)
    if quoted is not None:
        return quoted.strip()
    if bare is None:
        return None
    return bare.strip().strip('"').strip()


@dataclass(frozen=True)
class TextFieldRule:
    field: str
    pattern: re.Pattern
    extract: Callable[[re.Match], Any] = _group_text
    collect_all: bool = False


def _rule(field: str, pattern: str, extract: Callable[[re.Match], Any] = _group_text, collect_all: bool = False) -> TextFieldRule:
    return TextFieldRule(field, re.compile(pattern, _FLAGS), extract, collect_all)


# Value up to the next comma or newline
_VALUE = r"\s*([^,\n]+)"

TEXT_FIELD_RULES: tuple[TextFieldRule, ...] = (
    _rule("prompt", r"\A(.*?)(?:Negative prompt:|(?:^|\n)\s*Steps:)"),
    _rule("negative_prompt", r"Negative prompt:\s*(.*?)(?:(?<!Hires )\bSteps:|\Z)"),
    # NovelAI text exports label the negative prompt differently
    _rule("negative_prompt", r"Undesired content:\s*(.*?)(?:\n\w+:|\Z)"),
    _rule("steps", r"(?<!Hires )\bSteps:\s*(\d+)"),
    _rule("sampler", r"\b(?:Sampler|Sampling method):" + _VALUE),
    _rule("cfg_scale", r"\b(?:CFG\s+)?Scale:\s*(\d+(?:\.\d+)?)"),
    _rule("seed", r"(?<!Variation )\bSeed:\s*(\d+)"),
    _rule("model", r"\bModel:" + _VALUE),
    _rule("model_hash", r"\bModel hash:" + _VALUE),
    _rule("vae", r"\bVAE:" + _VALUE),
    _rule("vae_hash", r"\bVAE hash:" + _VALUE),
    _rule("clip_skip", r"\bClip skip:\s*(\d+)"),
    _rule("scheduler", r"\b(?:Schedule type|Scheduler):" + _VALUE),
    _rule("hires_upscaler", r"\bHires upscaler:" + _VALUE),
    _rule("hires_steps", r"\bHires steps:\s*(\d+)"),
    _rule("hires_upscale", r"\bHires upscale:\s*(\d+(?:\.\d+)?)"),
    _rule("denoising_strength", r"\bDenoising strength:\s*(\d+(?:\.\d+)?)"),
    _rule("ensd", r"\bENSD:\s*(\d+)"),
    _rule("size", r"\b(?:Hires )?Size:\s*(\d+)\s*x\s*(\d+)", _size_text),
    _rule("loras", r"\bLora:" + _VALUE, collect_all=True),
    _rule("lora_hashes", r"\bLora hashes:[ \t]*(?:\"([^\"\n]*)\"|([^\n]*))", _quoted_or_line),
    _rule("ti_hashes", r"\bTI hashes:[ \t]*(?:\"([^\"\n]*)\"|([^\n]*))", _quoted_or_line),
)


def looks_like_generation_data(text: Optional[str]) -> bool:
    """Cheap check used before parsing EXIF/XMP/IPTC free text."""
    if not isinstance(text, str) or not text:
        return False
    return bool(_GENERATION_DATA_RE.search(text))


def _apply_rule(rule: TextFieldRule, text: str, target: AiFieldsBuilder) -> None:
    if rule.collect_all:
        values = [v for v in (rule.extract(m) for m in rule.pattern.finditer(text)) if v]
        if not values:
            return
        target.merge_if_absent(rule.field, values[0] if len(values) == 1 else values)
        return
    match = rule.pattern.search(text)
    if match:
        target.merge_if_absent(rule.field, rule.extract(match))


def parse_text_metadata(text: Optional[str], target: Optional[AiFieldsBuilder] = None) -> AiFieldsBuilder:
    """
    Extract generation fields from one free-form text block into `target`.

    Fields already present in `target` are left untouched. Values are kept as
    the strings found in the text (`steps == "20"`).
    """
    if target is None:
        target = AiFieldsBuilder()
    if not isinstance(text, str) or not text.strip():
        return target
    for rule in TEXT_FIELD_RULES:
        if target.has(rule.field):
            continue
        _apply_rule(rule, text, target)
    return target
