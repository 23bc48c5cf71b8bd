"""Canonical display names for generator signature strings."""
from typing import Optional

A1111_NAME = "Stable Diffusion WebUI (A1111)"
INVOKEAI_NAME = "InvokeAI"

# (substrings, canonical name); first match wins
SOFTWARE_ALIASES = (
    (("automatic1111", "a1111"), A1111_NAME),
    (("invokeai",), INVOKEAI_NAME),
)


def normalize_software(raw: Optional[str]) -> Optional[str]:
    """Collapse a known software signature into its display name; unknown names pass through."""
    if not raw:
        return raw
    lowered = raw.lower()
    for needles, canonical in SOFTWARE_ALIASES:
        if any(needle in lowered for needle in needles):
            return canonical
    return raw
