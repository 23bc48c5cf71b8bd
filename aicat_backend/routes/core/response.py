"""
JSON envelope for route handlers.
"""

import math
from aiohttp import web
from aicat_backend.shared import Result


def _json_response(result: Result) -> web.Response:
    """
    Serialize a Result as `{ok, data, error, code, meta}`.

    Metadata failures are part of the payload, so the HTTP status is always 200.
    """
    payload = _sanitize_json_payload(
        {
            "ok": result.ok,
            "data": result.data,
            "error": result.error,
            "code": result.code,
            "meta": result.meta,
        }
    )
    return web.json_response(payload)


def _sanitize_json_payload(value):
    # Tag values may carry NaN/Infinity, which strict JSON rejects
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _sanitize_json_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_payload(v) for v in value]
    return value
