"""
Raw tag groups produced by container readers.

A reader (ExifTool, Pillow) exposes the metadata of one image as named groups
(`exif`, `png`, `iptc`, `xmp`, `file`), each mapping tag names to a
`TagValue`. Vendors disagree on tag casing (`parameters` vs `Parameters`), so
every lookup here is case-insensitive.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional

GROUP_NAMES = ("exif", "png", "iptc", "xmp", "file")


@dataclass(frozen=True)
class TagValue:
    """One tag: a human-readable description and, for numeric tags, the raw value."""

    description: str
    value: Any = None

    @classmethod
    def of(cls, raw: Any) -> "TagValue":
        if isinstance(raw, TagValue):
            return raw
        if isinstance(raw, Mapping):
            desc = raw.get("description")
            return cls(description="" if desc is None else str(desc), value=raw.get("value"))
        if isinstance(raw, (bytes, bytearray)):
            return cls(description=bytes(raw).decode("utf-8", errors="replace"), value=raw)
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return cls(description=str(raw), value=raw)
        if isinstance(raw, (list, tuple)):
            return cls(description=", ".join(str(item) for item in raw), value=list(raw))
        return cls(description="" if raw is None else str(raw))


def _lookup(mapping: Mapping[str, Any], name: str) -> Any:
    if name in mapping:
        return mapping[name]
    lowered = name.lower()
    for key, value in mapping.items():
        if str(key).lower() == lowered:
            return value
    return None


class TagGroups:
    """Case-insensitive view over the raw tag groups of a single image."""

    def __init__(self, groups: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._groups: Dict[str, Dict[str, TagValue]] = {}
        for group, tags in (groups or {}).items():
            if not isinstance(tags, Mapping):
                continue
            for name, raw in tags.items():
                self.set_tag(str(group), str(name), raw)

    @classmethod
    def from_mapping(cls, groups: Optional[Mapping[str, Mapping[str, Any]]]) -> "TagGroups":
        return cls(groups)

    def set_tag(self, group: str, name: str, raw: Any) -> None:
        key = group.lower()
        bucket = self._groups.get(key)
        if bucket is None:
            bucket = {}
            self._groups[key] = bucket
        bucket[name] = TagValue.of(raw)

    def has_group(self, group: str) -> bool:
        return bool(self._groups.get(group.lower()))

    def group(self, group: str) -> Dict[str, TagValue]:
        return dict(self._groups.get(group.lower()) or {})

    def get_tag(self, group: str, name: str) -> Optional[TagValue]:
        """Return the tag or None; exact-case keys win over case-folded ones."""
        bucket = self._groups.get(group.lower())
        if not bucket:
            return None
        return _lookup(bucket, name)

    def get_text(self, group: str, *names: str) -> Optional[str]:
        """First non-blank description among `names` (aliases of the same tag)."""
        for name in names:
            tag = self.get_tag(group, name)
            if tag is not None and tag.description.strip():
                return tag.description
        return None

    def get_int(self, group: str, *names: str) -> Optional[int]:
        for name in names:
            tag = self.get_tag(group, name)
            if tag is None:
                continue
            for candidate in (tag.value, tag.description):
                parsed = _to_int(candidate)
                if parsed is not None:
                    return parsed
        return None

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return sum(len(tags) for tags in self._groups.values())

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {
            group: {name: {"description": tag.description, "value": tag.value} for name, tag in tags.items()}
            for group, tags in self._groups.items()
        }


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).strip()
    if text.endswith("px"):
        text = text[:-2].strip()
    try:
        return int(text)
    except ValueError:
        return None
