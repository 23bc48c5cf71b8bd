"""
Field names of the parsed metadata record and the fill-only-if-absent builder.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

STANDARD_FIELDS = ("camera", "camera_model", "date_taken", "width", "height", "software", "artist")

AI_FIELDS = (
    "prompt",
    "negative_prompt",
    "steps",
    "sampler",
    "cfg_scale",
    "seed",
    "model",
    "model_hash",
    "vae",
    "vae_hash",
    "clip_skip",
    "scheduler",
    "hires_upscaler",
    "hires_steps",
    "hires_upscale",
    "denoising_strength",
    "ensd",
    "size",
    "loras",
    "lora_hashes",
    "ti_hashes",
    "software",
    "description",
    "comment",
    "user_comment",
)

_AI_FIELD_SET = frozenset(AI_FIELDS)


def is_absent(value: Any) -> bool:
    """None, blank strings and empty containers carry no information; 0 does."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


class AiFieldsBuilder:
    """
    Accumulates AI generation fields across several sources.

    Sources are applied from highest to lowest priority; a field, once set,
    is never overwritten.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._fields: Dict[str, Any] = {}
        if initial:
            self.merge_all_if_absent(initial)

    def has(self, field: str) -> bool:
        return field in self._fields

    def get(self, field: str, default: Any = None) -> Any:
        return self._fields.get(field, default)

    def merge_if_absent(self, field: str, value: Any) -> bool:
        """Set `field` to `value` unless it already holds one. Returns True when written."""
        if field not in _AI_FIELD_SET:
            raise KeyError(f"Unknown AI field: {field}")
        if field in self._fields or is_absent(value):
            return False
        if isinstance(value, str):
            value = value.strip()
        elif isinstance(value, tuple):
            value = list(value)
        self._fields[field] = value
        return True

    def merge_all_if_absent(self, values: Mapping[str, Any]) -> List[str]:
        return [field for field, value in values.items() if self.merge_if_absent(field, value)]

    def fields(self) -> Iterable[str]:
        return [f for f in AI_FIELDS if f in self._fields]

    def to_dict(self) -> Dict[str, Any]:
        return {f: self._fields[f] for f in AI_FIELDS if f in self._fields}

    def __contains__(self, field: object) -> bool:
        return field in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def __bool__(self) -> bool:
        return bool(self._fields)

    def __repr__(self) -> str:
        return f"AiFieldsBuilder({self.to_dict()!r})"
