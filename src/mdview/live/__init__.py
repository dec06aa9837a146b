"""Live reload: file watching, change fan-out and WebSocket push."""

from mdview.live.connection import LiveReloadHandler
from mdview.live.hub import ChangeEvent, NotificationHub, Subscription
from mdview.live.watcher import ChangeSource

__all__ = [
    "ChangeEvent",
    "ChangeSource",
    "LiveReloadHandler",
    "NotificationHub",
    "Subscription",
]
