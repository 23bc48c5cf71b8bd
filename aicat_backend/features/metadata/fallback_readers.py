"""
Pillow-based container reader used when ExifTool is unavailable.

Produces the same tag-group shape as the ExifTool reader, from PNG text
chunks, EXIF IFDs, IPTC records and the raw XMP packet.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from PIL import Image, ExifTags, IptcImagePlugin

from ...shared import ErrorCode, Result, get_logger
from .tag_groups import TagGroups

logger = get_logger(__name__)

_EXIF_IFD_POINTER = 0x8769
_USER_COMMENT_TAG = 0x9286

# IPTC (record, dataset) -> ExifTool tag name
_IPTC_TAGS: Dict[tuple, str] = {
    (2, 5): "ObjectName",
    (2, 25): "Keywords",
    (2, 80): "By-line",
    (2, 120): "Caption-Abstract",
}

_USER_COMMENT_CODECS = {
    b"ASCII\x00\x00\x00": "ascii",
    b"JIS\x00\x00\x00\x00\x00": "shift_jis",
}
_LITTLE_ENDIAN = frozenset({"<", "II"})

# <ns:Name>value</ns:Name> and ns:Name="value"
_XMP_ELEMENT_RE = re.compile(r"<(?:[\w-]+:)?([\w-]+)(?:\s[^>]*)?>([^<]+)</(?:[\w-]+:)?\1>", re.DOTALL)
_XMP_ATTRIBUTE_RE = re.compile(r"\s(?!xmlns:)(?:[\w-]+:)([\w-]+)=\"([^\"]*)\"")
_XMP_SKIP = frozenset({"about", "xmptk", "li"})


def decode_user_comment(raw: Any, byte_order: Optional[str] = None) -> str:
    """
    Decode an EXIF UserComment, honoring its 8-byte character code header.

    UNICODE bodies follow the byte order of the enclosing EXIF block
    (`"<"`/`"II"` little endian, `">"`/`"MM"` big endian). Without one,
    big endian is assumed.
    """
    if isinstance(raw, str):
        return raw.strip("\x00").strip()
    if not isinstance(raw, (bytes, bytearray)):
        return "" if raw is None else str(raw)
    blob = bytes(raw)
    header, body = blob[:8], blob[8:]
    if header == b"UNICODE\x00":
        if body[:2] in (b"\xff\xfe", b"\xfe\xff"):
            encoding = "utf-16"
        elif byte_order in _LITTLE_ENDIAN:
            encoding = "utf-16-le"
        else:
            encoding = "utf-16-be"
        text = body.decode(encoding, errors="replace")
    elif header in _USER_COMMENT_CODECS:
        text = body.decode(_USER_COMMENT_CODECS[header], errors="replace")
    elif len(blob) >= 8 and header == b"\x00" * 8:
        text = body.decode("utf-8", errors="replace")
    else:
        text = blob.decode("utf-8", errors="replace")
    return text.strip("\x00").strip()


def _apply_size_fields(groups: TagGroups, img: Image.Image) -> None:
    # PNG dimensions live in the IHDR chunk, not in a File group
    group = "png" if img.format == "PNG" else "file"
    groups.set_tag(group, "ImageWidth", int(img.width))
    groups.set_tag(group, "ImageHeight", int(img.height))


def _apply_png_text(groups: TagGroups, img: Image.Image) -> None:
    if img.format != "PNG":
        return
    text_chunks = getattr(img, "text", None) or {}
    for key, value in text_chunks.items():
        if value is None:
            continue
        groups.set_tag("png", str(key), value)


def _exif_tag_name(tag_id: int) -> str:
    return ExifTags.TAGS.get(tag_id, str(tag_id))


def _apply_exif_fields(groups: TagGroups, img: Image.Image) -> None:
    exif = img.getexif()
    if not exif:
        return
    for tag_id, value in exif.items():
        if tag_id == _EXIF_IFD_POINTER:
            continue
        groups.set_tag("exif", _exif_tag_name(tag_id), _exif_value(value))
    sub_ifd = exif.get_ifd(_EXIF_IFD_POINTER)
    for tag_id, value in (sub_ifd or {}).items():
        if tag_id == _USER_COMMENT_TAG:
            groups.set_tag("exif", "UserComment", decode_user_comment(value, exif.endian))
            continue
        groups.set_tag("exif", _exif_tag_name(tag_id), _exif_value(value))


def _exif_value(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip("\x00").strip()
    if isinstance(value, str):
        return value.strip("\x00").strip()
    return value


def _apply_iptc_fields(groups: TagGroups, img: Image.Image) -> None:
    info = IptcImagePlugin.getiptcinfo(img)
    if not info:
        return
    for key, name in _IPTC_TAGS.items():
        value = info.get(key)
        if value is None:
            continue
        if isinstance(value, list):
            value = [_exif_value(v) for v in value]
        else:
            value = _exif_value(value)
        groups.set_tag("iptc", name, value)


def _xmp_packet(img: Image.Image) -> Optional[str]:
    raw = img.info.get("xmp") or img.info.get("XML:com.adobe.xmp")
    if not raw:
        return None
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="ignore")
    return str(raw)


def parse_xmp_properties(packet: str) -> Dict[str, str]:
    """Flatten simple XMP properties (attribute and element form) to name -> text."""
    props: Dict[str, str] = {}
    for name, value in _XMP_ATTRIBUTE_RE.findall(packet):
        if name not in _XMP_SKIP and value.strip():
            props.setdefault(name, value)
    for name, value in _XMP_ELEMENT_RE.findall(packet):
        if name not in _XMP_SKIP and value.strip():
            props.setdefault(name, value.strip())
    return props


def _apply_xmp_fields(groups: TagGroups, img: Image.Image) -> None:
    packet = _xmp_packet(img)
    if not packet:
        return
    for name, value in parse_xmp_properties(packet).items():
        groups.set_tag("xmp", name, value)


def read_tag_groups_pillow(path: str) -> Result[TagGroups]:
    """
    Read the tag groups of one image with Pillow.

    Returns Err(NOT_FOUND) for missing files and Err(PARSE_ERROR) for files
    Pillow cannot decode.
    """
    groups = TagGroups()
    try:
        with Image.open(path) as img:
            _apply_size_fields(groups, img)
            _apply_png_text(groups, img)
            _apply_exif_fields(groups, img)
            _apply_iptc_fields(groups, img)
            _apply_xmp_fields(groups, img)
    except FileNotFoundError:
        return Result.Err(ErrorCode.NOT_FOUND, f"File not found: {path}", quality="none")
    except Exception as exc:
        logger.debug("Pillow could not read %s: %s", path, exc)
        return Result.Err(ErrorCode.PARSE_ERROR, f"Unreadable image: {exc}", quality="none")
    return Result.Ok(groups, reader="pillow", quality="degraded")
