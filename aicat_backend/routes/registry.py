"""
Route registration system.
Collects every route handler and registers them on an aiohttp app.
"""

from __future__ import annotations

from aiohttp import web

from aicat_backend.observability import ensure_observability
from aicat_backend.shared import get_logger, log_success

from .handlers import register_metadata_routes

API_PREFIX = "/aicat/"
_APP_KEY_ROUTES_REGISTERED: web.AppKey[bool] = web.AppKey("_aicat_routes_registered", bool)

logger = get_logger(__name__)


def register_all_routes() -> web.RouteTableDef:
    """Build a route table holding every endpoint."""
    routes = web.RouteTableDef()
    register_metadata_routes(routes)
    return routes


def register_routes(app: web.Application) -> None:
    """
    Register all routes and the request-id middleware on `app`.

    Calling it twice on the same app is a no-op.
    """
    if app.get(_APP_KEY_ROUTES_REGISTERED):
        logger.debug("Routes already registered, skipping")
        return
    ensure_observability(app)
    app.add_routes(register_all_routes())
    app[_APP_KEY_ROUTES_REGISTERED] = True
    log_success(logger, f"Registered API routes under {API_PREFIX}")


def create_app() -> web.Application:
    app = web.Application()
    register_routes(app)
    return app
