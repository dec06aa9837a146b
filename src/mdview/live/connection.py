"""WebSocket push channel for live reload.

Each browser tab holds one connection. The handler relays hub events as
``reload`` messages, pings the browser periodically and drains incoming
frames; the first of these to stop ends the connection.
"""

import asyncio
import logging
import weakref

from aiohttp import WSCloseCode, WSMsgType, web

from mdview.live.hub import NotificationHub, Subscription

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = "reload"
DEFAULT_PING_INTERVAL = 30.0


class LiveReloadHandler:
    """Serves live reload WebSocket connections."""

    def __init__(
        self,
        hub: NotificationHub,
        *,
        ping_interval: float = DEFAULT_PING_INTERVAL,
    ) -> None:
        """Initialize the handler.

        Args:
            hub: Hub to subscribe each connection to
            ping_interval: Seconds between liveness pings
        """
        self._hub = hub
        self._ping_interval = ping_interval
        self._connections: weakref.WeakSet[web.WebSocketResponse] = weakref.WeakSet()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Handle WebSocket connection for live reload.

        Args:
            request: aiohttp request

        Returns:
            WebSocket response
        """
        ws = web.WebSocketResponse()

        # Subscribe before the handshake completes so that no change
        # published after the client connected can be missed.
        with self._hub.subscribe() as subscription:
            await ws.prepare(request)
            self._connections.add(ws)
            logger.debug(f"Live reload client connected from {request.remote}")
            try:
                await self._serve(ws, subscription)
            finally:
                self._connections.discard(ws)
                if not ws.closed:
                    await ws.close()
                logger.debug(f"Live reload client {request.remote} disconnected")

        return ws

    async def close_all(self) -> None:
        """Close every open connection."""
        for ws in list(self._connections):
            await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")

    async def _serve(self, ws: web.WebSocketResponse, subscription: Subscription) -> None:
        """Race relay, probe and drain; cancel the rest when one finishes.

        A failed write in the relay or probe ends the connection just like a
        client close. The subscription is released either way.
        """
        tasks = {
            asyncio.create_task(self._relay(ws, subscription)),
            asyncio.create_task(self._probe(ws)),
            asyncio.create_task(self._drain(ws)),
        }
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.debug(f"Live reload connection ended: {task.exception()!r}")
        finally:
            subscription.close()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _relay(self, ws: web.WebSocketResponse, subscription: Subscription) -> None:
        async for _event in subscription:
            await ws.send_str(RELOAD_MESSAGE)

    async def _probe(self, ws: web.WebSocketResponse) -> None:
        while not ws.closed:
            await asyncio.sleep(self._ping_interval)
            await ws.ping()

    async def _drain(self, ws: web.WebSocketResponse) -> None:
        # Pongs are consumed by aiohttp's autoping; anything else is ignored
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                break


def create_live_reload_routes(handler: LiveReloadHandler) -> list[web.RouteDef]:
    """Create routes for live reload WebSocket.

    Args:
        handler: LiveReloadHandler instance

    Returns:
        List of route definitions
    """
    return [web.get("/ws", handler.handle_websocket)]
