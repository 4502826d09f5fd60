"""
WebSocket broadcast channel.

Operators attach to `/ws` and receive a `new-deal` message for every deal
ingested while they are attached. Late joiners get no backlog; they can call
GET /api/deals/pending instead.

publish() may be called from the request thread pool. Each subscriber owns an
asyncio.Queue on the loop that accepted it, and messages are handed over with
call_soon_threadsafe so the publisher never waits on a slow socket.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List, Tuple
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from services.broadcast_service import BroadcastChannel, BroadcastEvent

logger = logging.getLogger(__name__)

Subscriber = Tuple[asyncio.AbstractEventLoop, "asyncio.Queue[Dict[str, Any]]"]


class ConnectionHub(BroadcastChannel):
    """Fan-out of broadcast events to attached WebSocket consumers."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, Subscriber] = {}
        self._lock = threading.Lock()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def attach(self) -> Tuple[str, "asyncio.Queue[Dict[str, Any]]"]:
        """Register a consumer on the running loop. Must be called from that loop."""

        connection_id = uuid4().hex
        queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()
        with self._lock:
            self._subscribers[connection_id] = (asyncio.get_running_loop(), queue)
        return connection_id, queue

    def detach(self, connection_id: str) -> None:
        with self._lock:
            self._subscribers.pop(connection_id, None)

    def publish(self, event: BroadcastEvent) -> int:
        message = event.to_message()
        with self._lock:
            subscribers = list(self._subscribers.items())

        delivered = 0
        for connection_id, (loop, queue) in subscribers:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, message)
            except RuntimeError:
                # loop already closed; the socket handler is going away
                logger.debug("Dropping event for closed connection %s", connection_id)
                continue
            delivered += 1
        return delivered


router = APIRouter()


async def _forward(websocket: WebSocket, queue: "asyncio.Queue[Dict[str, Any]]") -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _drain(websocket: WebSocket) -> None:
    # consumers are not expected to talk; reading only detects the disconnect
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def deal_feed(websocket: WebSocket) -> None:
    """Real-time feed of redacted deal announcements."""

    hub: ConnectionHub = websocket.app.state.hub
    # subscribed before the handshake completes, so no event is missed after connect
    connection_id, queue = hub.attach()
    tasks: List[asyncio.Task] = []
    try:
        await websocket.accept()
        logger.info("[SOCKET] Client connected: %s", connection_id)

        tasks = [
            asyncio.create_task(_forward(websocket, queue)),
            asyncio.create_task(_drain(websocket)),
        ]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("[SOCKET] Connection %s closed with error: %s", connection_id, exc)
    finally:
        for task in tasks:
            task.cancel()
        hub.detach(connection_id)
        logger.info("[SOCKET] Client disconnected: %s", connection_id)


__all__ = ["ConnectionHub", "router"]
