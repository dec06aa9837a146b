"""aiohttp server for mdview.

Application factory, route registration and the serving loop.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from urllib.parse import unquote

from aiohttp import web
from aiohttp.typedefs import Handler

from mdview.api.files import create_files_routes
from mdview.api.pages import create_pages_routes
from mdview.app_keys import (
    change_source_key,
    live_reload_handler_key,
    renderer_key,
    session_key,
)
from mdview.config import Config
from mdview.core.paths import has_unsafe_segments
from mdview.core.renderer import PageRenderer
from mdview.live import ChangeSource, LiveReloadHandler
from mdview.live.connection import create_live_reload_routes
from mdview.session import Session

logger = logging.getLogger(__name__)

_GUARDED_PREFIXES = ("/md/", "/files/")


@web.middleware
async def reject_unsafe_paths(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Reject traversal attempts on document and file routes.

    Checks the request target as sent, before any URL normalisation could
    remove ``..`` segments.
    """
    raw_path = unquote(request.raw_path.split("?", 1)[0])
    for prefix in _GUARDED_PREFIXES:
        if raw_path.startswith(prefix) and has_unsafe_segments(raw_path[len(prefix) - 1 :]):
            logger.warning(f"Rejected unsafe path: {request.raw_path}")
            raise web.HTTPBadRequest(text="Invalid path")
    return await handler(request)


def create_app(config: Config, session: Session) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        session: Document being served

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[reject_unsafe_paths])

    app[session_key] = session
    app[renderer_key] = PageRenderer(session.root_dir)

    app.router.add_routes(create_pages_routes())
    app.router.add_routes(create_files_routes())

    # Live reload is replaced by client-side polling when a refresh interval is set
    if session.live_reload_enabled:
        live_config = config.live_reload
        change_source = ChangeSource(
            session.file_path,
            session.hub,
            debounce_ms=live_config.debounce_ms,
            step_ms=live_config.step_ms,
        )
        handler = LiveReloadHandler(session.hub, ping_interval=live_config.ping_interval)

        app[change_source_key] = change_source
        app[live_reload_handler_key] = handler
        app.router.add_routes(create_live_reload_routes(handler))
        app.on_startup.append(_start_live_reload)
        app.on_shutdown.append(_close_live_connections)
        app.on_cleanup.append(_stop_live_reload)

    return app


async def _start_live_reload(app: web.Application) -> None:
    """Start the file watcher on application startup."""
    await app[change_source_key].start()


async def _close_live_connections(app: web.Application) -> None:
    """Close open WebSockets so shutdown isn't held up by browsers."""
    await app[live_reload_handler_key].close_all()


async def _stop_live_reload(app: web.Application) -> None:
    """Stop the file watcher on application cleanup."""
    await app[change_source_key].stop()


async def serve(
    config: Config,
    session: Session,
    on_ready: Callable[[str], None] | None = None,
) -> None:
    """Serve until cancelled.

    Args:
        config: Application configuration
        session: Document being served
        on_ready: Called with the server URL once the socket is listening
    """
    app = create_app(config, session)
    runner = web.AppRunner(app)
    await runner.setup()
    try:
        site = web.TCPSite(runner, config.server.host, config.server.port)
        await site.start()

        host, port = runner.addresses[0][:2]
        url = f"http://{_display_host(host)}:{port}"
        logger.info(f"Serving {session.file_path} at {url}")
        if on_ready is not None:
            on_ready(url)

        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def run_server(
    config: Config,
    session: Session,
    on_ready: Callable[[str], None] | None = None,
) -> None:
    """Run the server until interrupted.

    Args:
        config: Application configuration
        session: Document being served
        on_ready: Called with the server URL once the socket is listening
    """
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(config, session, on_ready))


def _display_host(host: str) -> str:
    if host in ("127.0.0.1", "::1", "0.0.0.0", "::"):
        return "localhost"
    if ":" in host:
        return f"[{host}]"
    return host
