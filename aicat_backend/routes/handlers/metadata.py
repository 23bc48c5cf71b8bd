"""
Image metadata endpoint.
"""
import asyncio

from aiohttp import web

from aicat_backend.config import TO_THREAD_TIMEOUT_S
from aicat_backend.features.metadata.service import get_metadata_service
from aicat_backend.shared import ErrorCode, Result, get_logger, sanitize_error_message
from ..core import _json_response

logger = get_logger(__name__)

METADATA_ROUTE = "/aicat/images/metadata"


def register_metadata_routes(routes: web.RouteTableDef) -> None:
    """Register metadata extraction routes."""
    @routes.get(METADATA_ROUTE)
    async def get_image_metadata(request):
        """
        Parsed metadata for one image.

        Query params:
            path: Image file path

        `data` is null with `meta.found = false` when the file could not be
        read, so clients can tell "no metadata" from an empty record.
        """
        file_path = (request.query.get("path") or "").strip()
        if not file_path:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Missing 'path' parameter"))

        try:
            result = await asyncio.wait_for(
                get_metadata_service().aget_metadata(file_path),
                timeout=TO_THREAD_TIMEOUT_S,
            )
        except asyncio.TimeoutError:
            result = Result.Err(ErrorCode.TIMEOUT, "Metadata extraction timed out")
        except Exception as exc:
            logger.error("Metadata route failed for %s: %s", file_path, exc)
            result = Result.Err(ErrorCode.METADATA_FAILED, sanitize_error_message(exc, "Failed to extract metadata"))

        if result.ok:
            meta = dict(result.meta or {})
            meta["found"] = True
            return _json_response(Result.Ok(result.data, **meta))

        if result.code == ErrorCode.INVALID_INPUT.value:
            return _json_response(
                Result.Err(result.code, sanitize_error_message(result.error, "Invalid file path"))
            )

        return _json_response(
            Result.Ok(
                None,
                found=False,
                cause=str(result.meta.get("cause") or result.code),
                reason=sanitize_error_message(result.error, "Metadata unavailable"),
            )
        )
