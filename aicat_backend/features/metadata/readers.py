"""
Convert ExifTool output into raw tag groups.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

from ...adapters.tools import ExifTool
from ...shared import Result
from .tag_groups import GROUP_NAMES, TagGroups

# ExifTool family-0 group -> tag group
_EXIFTOOL_GROUPS: Dict[str, str] = {name: name for name in GROUP_NAMES}


def tag_groups_from_exiftool(data: Mapping[str, Any]) -> TagGroups:
    """
    Map a `-G0` ExifTool dict (`"PNG:Parameters": "..."`) onto tag groups.

    Groups the engine does not consult (Composite, MakerNotes, ...) are dropped.
    """
    groups = TagGroups()
    for key, value in data.items():
        if ":" not in key:
            continue
        prefix, name = key.split(":", 1)
        group = _EXIFTOOL_GROUPS.get(prefix.strip().lower())
        if group is None or value is None:
            continue
        groups.set_tag(group, name.strip(), value)
    return groups


def read_tag_groups_exiftool(exiftool: ExifTool, path: str) -> Result[TagGroups]:
    res = exiftool.read(path)
    if not res.ok:
        return Result.Err(res.code, res.error or "ExifTool read failed", **(res.meta or {}))
    return Result.Ok(tag_groups_from_exiftool(res.data or {}), reader="exiftool", **(res.meta or {}))
