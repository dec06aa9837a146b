"""Resource endpoint for files linked from documents (images, PDFs, ...)."""

import logging
from pathlib import Path

from aiohttp import web

from mdview.app_keys import session_key
from mdview.core.paths import UnsafePathError, resolve_under_root

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
}

CACHE_CONTROL = "public, max-age=3600"


def create_files_routes() -> list[web.RouteDef]:
    return [web.get("/files/{path:.*}", get_file)]


def mime_type_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), DEFAULT_MIME_TYPE)


async def get_file(request: web.Request) -> web.Response:
    path = request.match_info["path"]
    session = request.app[session_key]

    try:
        file_path = resolve_under_root(session.root_dir, path)
    except UnsafePathError as e:
        raise web.HTTPBadRequest(text=str(e)) from e

    if not file_path.is_file():
        raise web.HTTPNotFound(text=f"File not found: {path}")

    try:
        content = file_path.read_bytes()
    except OSError as e:
        logger.error(f"Failed to read {file_path}: {e}")
        raise web.HTTPInternalServerError(text="Failed to read file") from e

    return web.Response(
        body=content,
        content_type=mime_type_for(file_path),
        headers={"Cache-Control": CACHE_CONTROL},
    )
