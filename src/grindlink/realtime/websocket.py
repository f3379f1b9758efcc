"""WebSocket endpoint — real-time event delivery to frontend clients.

Learn: Each client connects to /ws. The handler:
1. Subscribes to the broadcast channel BEFORE accepting, so once the
   client sees the handshake complete it cannot miss a later publish
2. Forwards every broadcast message to the client as a JSON text frame
3. Answers {"type": "ping"} with {"type": "pong"}
4. Releases the subscription on disconnect — there is no replay buffer

This is a long-lived connection — one per browser tab.
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from grindlink.api.deps import get_broadcaster
from grindlink.events.types import PING, PONG
from grindlink.realtime.pubsub import Broadcaster, Subscription

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def events_websocket(
    websocket: WebSocket,
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Stream every new_assignment / new_user event to this client.

    Learn: Two concurrent tasks run:
    1. Broadcast listener — reads from the subscription, sends to WebSocket
    2. Client listener — reads from WebSocket (ping/pong, disconnect)

    When either side finishes, the other is cancelled.
    """
    async with broadcaster.subscribe() as sub:
        await websocket.accept()
        client = websocket.client
        logger.info("ws.connected", client=f"{client.host}:{client.port}" if client else None)

        forward_task = asyncio.create_task(_forward(websocket, sub))
        client_task = asyncio.create_task(_client_listener(websocket))

        try:
            # Usually ends on client disconnect
            done, pending = await asyncio.wait(
                [forward_task, client_task],
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        finally:
            if websocket.client_state == WebSocketState.CONNECTED:
                await websocket.close()
            logger.info("ws.disconnected")


async def _forward(websocket: WebSocket, sub: Subscription) -> None:
    """Forward broadcast messages to the WebSocket client."""
    try:
        async for message in sub:
            await websocket.send_text(json.dumps(message))
    except (WebSocketDisconnect, RuntimeError):
        # Client went away mid-send
        pass


async def _client_listener(websocket: WebSocket) -> None:
    """Handle incoming frames until the client disconnects."""
    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == PING:
                await websocket.send_text(json.dumps({"type": PONG}))
    except WebSocketDisconnect:
        pass
