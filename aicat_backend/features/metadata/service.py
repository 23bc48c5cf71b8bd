"""
Metadata service - reads one image's containers and builds its parsed metadata.
"""
import asyncio
import logging
import os
import threading
from typing import Any, Dict, Optional

from ...adapters.tools import ExifTool
from ...config import (
    METADATA_CACHE_ENABLED,
    METADATA_CACHE_MAX_ENTRIES,
    METADATA_CACHE_TTL_SECONDS,
    METADATA_READER,
)
from ...shared import ErrorCode, MetadataQuality, ReaderMode, Result, classify_file, get_logger, log_structured
from .fallback_readers import read_tag_groups_pillow
from .metadata_cache import MetadataCache
from .prioritizer import build_parsed_metadata
from .readers import read_tag_groups_exiftool
from .tag_groups import TagGroups

logger = get_logger(__name__)

# ExifTool failures that Pillow cannot recover from either
_NO_FALLBACK_CODES = {ErrorCode.NOT_FOUND.value, ErrorCode.INVALID_INPUT.value}


def _coerce_reader_mode(value: Any) -> ReaderMode:
    if isinstance(value, ReaderMode):
        return value
    try:
        return ReaderMode(str(value or "").strip().lower())
    except ValueError:
        logger.warning("Unknown metadata reader %r, using auto", value)
        return ReaderMode.AUTO


def _metadata_quality(metadata: Dict[str, Any]) -> MetadataQuality:
    if "ai" in metadata:
        return "full"
    return "partial" if metadata else "none"


class MetadataService:
    """
    Metadata extraction service.

    Picks a container reader (ExifTool or Pillow), runs the source
    prioritizer over the tag groups and caches the result per file.
    """

    def __init__(
        self,
        exiftool: Optional[ExifTool] = None,
        reader_mode: ReaderMode | str | None = None,
        cache: Optional[MetadataCache] = None,
        use_cache: Optional[bool] = None,
    ):
        """
        Initialize metadata service.

        Args:
            exiftool: ExifTool adapter instance (built on demand when omitted)
            reader_mode: auto, exiftool or pillow (defaults to AICAT_METADATA_READER)
            cache: Cache instance to share between services
            use_cache: Disable caching with False (defaults to AICAT_METADATA_CACHE_ENABLED)
        """
        self.reader_mode = _coerce_reader_mode(reader_mode if reader_mode is not None else METADATA_READER)
        if exiftool is None and self.reader_mode != ReaderMode.PILLOW:
            exiftool = ExifTool()
        self.exiftool = exiftool
        enabled = METADATA_CACHE_ENABLED if use_cache is None else bool(use_cache)
        if cache is None:
            cache = MetadataCache(METADATA_CACHE_TTL_SECONDS, METADATA_CACHE_MAX_ENTRIES)
        self._cache = cache if enabled else None

    def read_tag_groups(self, file_path: str) -> Result[TagGroups]:
        """Read the raw tag groups of one file with the configured reader."""
        if self.reader_mode == ReaderMode.PILLOW or self.exiftool is None:
            return read_tag_groups_pillow(file_path)

        if self.reader_mode == ReaderMode.EXIFTOOL:
            return read_tag_groups_exiftool(self.exiftool, file_path)

        if not self.exiftool.is_available():
            return read_tag_groups_pillow(file_path)

        exif_res = read_tag_groups_exiftool(self.exiftool, file_path)
        if exif_res.ok or exif_res.code in _NO_FALLBACK_CODES:
            return exif_res
        logger.debug("ExifTool read failed for %s (%s), falling back to Pillow", file_path, exif_res.code)
        return read_tag_groups_pillow(file_path)

    def get_metadata(self, file_path: str) -> Result[Dict[str, Any]]:
        """
        Extract parsed metadata from an image file.

        Returns:
            Result with the parsed metadata dict: standard fields plus an
            `ai` dict when generation data was found. Err codes: INVALID_INPUT,
            NOT_FOUND, UNSUPPORTED, METADATA_FAILED.
        """
        if not file_path or "\x00" in str(file_path):
            return Result.Err(ErrorCode.INVALID_INPUT, "Invalid file path", quality="none")
        if not os.path.isfile(file_path):
            return Result.Err(ErrorCode.NOT_FOUND, f"File not found: {file_path}", quality="none")
        if classify_file(file_path) != "image":
            return Result.Err(ErrorCode.UNSUPPORTED, f"Unsupported file type: {file_path}", quality="none")

        mtime = self._mtime(file_path)
        if self._cache is not None:
            cached = self._cache.get(file_path, mtime)
            if cached is not None:
                return Result.Ok(cached, quality=_metadata_quality(cached), cached=True)

        groups_res = self.read_tag_groups(file_path)
        if not groups_res.ok or groups_res.data is None:
            self._log_metadata_issue(
                logging.WARNING,
                "Metadata read failed",
                file_path,
                tool=str(groups_res.meta.get("reader") or self.reader_mode.value),
                error=f"{groups_res.code}: {groups_res.error}",
            )
            return Result.Err(
                ErrorCode.METADATA_FAILED,
                groups_res.error or "Metadata read failed",
                cause=groups_res.code,
                quality="none",
            )

        try:
            metadata = build_parsed_metadata(groups_res.data)
        except Exception as exc:
            logger.error("Metadata parsing failed for %s: %s", file_path, exc)
            return Result.Err(ErrorCode.PARSE_ERROR, f"Metadata parsing failed: {exc}", quality="degraded")

        if self._cache is not None:
            self._cache.put(file_path, metadata, mtime)
        return Result.Ok(
            metadata,
            quality=_metadata_quality(metadata),
            reader=groups_res.meta.get("reader"),
        )

    def read_metadata(self, file_path: str) -> Optional[Dict[str, Any]]:
        """
        Parsed metadata for `file_path`, or None when the file cannot be read.

        Never raises. An empty dict means the file was read but carries no
        metadata at all.
        """
        try:
            res = self.get_metadata(file_path)
        except Exception as exc:
            logger.error("Unexpected metadata failure for %s: %s", file_path, exc)
            return None
        if not res.ok:
            # reader failures were already logged by get_metadata
            if res.code != ErrorCode.METADATA_FAILED.value:
                logger.warning("No metadata for %s: [%s] %s", file_path, res.code, res.error)
            return None
        return res.data

    async def aget_metadata(self, file_path: str) -> Result[Dict[str, Any]]:
        return await asyncio.to_thread(self.get_metadata, file_path)

    async def aread_metadata(self, file_path: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self.read_metadata, file_path)

    def invalidate(self, file_path: str) -> None:
        if self._cache is not None:
            self._cache.invalidate(file_path)

    @staticmethod
    def _mtime(file_path: str) -> Optional[float]:
        try:
            return os.stat(file_path).st_mtime
        except OSError:
            return None

    def _log_metadata_issue(
        self,
        level: int,
        message: str,
        file_path: str,
        tool: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        context: Dict[str, Any] = {"file_path": file_path}
        if tool:
            context["tool"] = tool
        if error:
            context["error"] = error
        log_structured(logger, level, message, **context)


_default_service: Optional[MetadataService] = None
_default_lock = threading.Lock()


def get_metadata_service() -> MetadataService:
    """Process-wide service built from the environment configuration."""
    global _default_service
    with _default_lock:
        if _default_service is None:
            _default_service = MetadataService()
        return _default_service


def read_metadata(file_path: str) -> Optional[Dict[str, Any]]:
    """Parsed metadata for one image, or None if it cannot be read."""
    return get_metadata_service().read_metadata(file_path)
