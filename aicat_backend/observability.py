"""
Observability helpers (request id + timing) for aiohttp routes.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from aiohttp import web

from .shared import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_APPKEY_OBS_INSTALLED: web.AppKey[bool] = web.AppKey("_aicat_observability_installed", bool)
REQUEST_ID_KEY: web.RequestKey[str] = web.RequestKey("aicat_request_id", str)
DURATION_MS_KEY: web.RequestKey[float] = web.RequestKey("aicat_duration_ms", float)


def _new_request_id() -> str:
    return uuid4().hex


def _get_request_id(request: web.Request) -> str:
    rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return rid or _new_request_id()


@web.middleware
async def request_context_middleware(request: web.Request, handler):
    """Add request-id correlation and a timing log line to every request."""
    rid = _get_request_id(request)
    request[REQUEST_ID_KEY] = rid
    token = request_id_var.set(rid)
    start = time.perf_counter()
    status: int | None = None
    try:
        response = await handler(request)
        status = int(getattr(response, "status", 200) or 200)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
    except web.HTTPException as exc:
        status = int(exc.status)
        exc.headers[REQUEST_ID_HEADER] = rid
        raise
    except Exception:
        status = 500
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        request[DURATION_MS_KEY] = duration_ms
        _emit_request_log(request, status)
        request_id_var.reset(token)


def build_request_log_fields(request: web.Request, response_status: int | None = None) -> dict[str, Any]:
    """Build a JSON-serializable dict of request/response fields for logs."""
    return {
        "request_id": request.get(REQUEST_ID_KEY),
        "method": request.method,
        "path": request.path,
        "status": response_status,
        "duration_ms": request.get(DURATION_MS_KEY),
    }


def _emit_request_log(request: web.Request, status: int | None) -> None:
    fields = build_request_log_fields(request, status)
    if status is not None and status >= 500:
        logger.error("Request handled %s %s -> %s", fields["method"], fields["path"], status)
    elif status is not None and status >= 400:
        logger.warning("Request handled %s %s -> %s", fields["method"], fields["path"], status)
    else:
        logger.debug("Request handled %s %s -> %s (%.1f ms)", fields["method"], fields["path"], status, fields["duration_ms"] or 0.0)


def ensure_observability(app: web.Application) -> None:
    """
    Install middleware once.
    """
    if app.get(_APPKEY_OBS_INSTALLED):
        return
    app[_APPKEY_OBS_INSTALLED] = True
    app.middlewares.append(request_context_middleware)
