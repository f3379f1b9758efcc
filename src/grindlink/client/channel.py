"""WebSocket transport for the broadcast channel.

Learn: A channel hands out sessions. A session is an async context
manager yielding an async iterator of decoded event frames; leaving the
context closes the socket, which is the unsubscribe. LiveList.mount()
accepts anything with this shape, so tests plug in an in-memory one.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog
import websockets
from websockets.exceptions import ConnectionClosedError

logger = structlog.get_logger()


def ws_url(base_url: str) -> str:
    """http://host:4000 -> ws://host:4000/ws (https -> wss)."""
    base = base_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return f"{base}/ws"


class WebSocketChannel:
    def __init__(self, url: str):
        self.url = url

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncIterator[dict[str, Any]]]:
        async with websockets.connect(self.url) as ws:
            logger.info("channel.connected", url=self.url)
            yield self._frames(ws)
        logger.info("channel.disconnected", url=self.url)

    async def _frames(self, ws) -> AsyncIterator[dict[str, Any]]:
        try:
            async for frame in ws:
                try:
                    yield json.loads(frame)
                except json.JSONDecodeError:
                    logger.warning("channel.bad_frame", frame=str(frame)[:200])
        except ConnectionClosedError as e:
            # No replay — whatever was published while we were gone is lost
            logger.warning("channel.dropped", url=self.url, error=str(e))
