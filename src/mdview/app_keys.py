"""Application keys for type-safe app configuration access."""

from aiohttp import web

from mdview.core.renderer import PageRenderer
from mdview.live.connection import LiveReloadHandler
from mdview.live.watcher import ChangeSource
from mdview.session import Session

session_key = web.AppKey("session", Session)
renderer_key = web.AppKey("renderer", PageRenderer)
change_source_key = web.AppKey("change_source", ChangeSource)
live_reload_handler_key = web.AppKey("live_reload_handler", LiveReloadHandler)
