"""Page endpoints.

Renders the root document and Markdown documents linked from it.
"""

import logging

from aiohttp import web

from mdview.app_keys import renderer_key, session_key
from mdview.core.links import is_markdown_path
from mdview.core.paths import UnsafePathError, resolve_under_root

logger = logging.getLogger(__name__)

_NO_CACHE = {"Cache-Control": "no-cache"}


def create_pages_routes() -> list[web.RouteDef]:
    return [
        web.get("/", get_root_page),
        web.get("/md/{path:.*}", get_linked_page),
    ]


async def get_root_page(request: web.Request) -> web.Response:
    session = request.app[session_key]
    renderer = request.app[renderer_key]

    try:
        page = renderer.render_file(
            session.file_path,
            live_reload=session.live_reload_enabled,
            refresh_interval=session.refresh_interval,
        )
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {session.file_path}: {e}")
        raise web.HTTPInternalServerError(text="Failed to read document") from e

    return _html_response(page)


async def get_linked_page(request: web.Request) -> web.Response:
    path = request.match_info["path"]
    session = request.app[session_key]
    renderer = request.app[renderer_key]

    try:
        source_path = resolve_under_root(session.root_dir, path)
    except UnsafePathError as e:
        raise web.HTTPBadRequest(text=str(e)) from e

    if not is_markdown_path(source_path) or not source_path.is_file():
        raise web.HTTPNotFound(text=f"Document not found: {path}")

    try:
        page = renderer.render_file(source_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {source_path}: {e}")
        raise web.HTTPInternalServerError(text="Failed to read document") from e

    return _html_response(page)


def _html_response(page: str) -> web.Response:
    return web.Response(text=page, content_type="text/html", headers=_NO_CACHE)

