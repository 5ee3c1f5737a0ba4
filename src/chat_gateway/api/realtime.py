"""Realtime fan-out for the community chat channel.

Every payload a client sends is re-broadcast to every connected client
(sender included) as ``{"event": "receive_message", "data": payload}``.
Nothing is persisted and no ordering is promised beyond delivery-as-received.
"""

import logging
import uuid
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

RECEIVE_EVENT = "receive_message"


class BroadcastHub:
    """Tracks open websocket connections and broadcasts to all of them."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a websocket and register it.

        Returns:
            The connection id
        """
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = websocket
        logger.info("User connected: %s (%d open)", connection_id, len(self._connections))
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        if self._connections.pop(connection_id, None) is not None:
            logger.info("User disconnected: %s (%d open)", connection_id, len(self._connections))

    async def broadcast(self, payload: Any) -> int:
        """Send a payload to every open connection.

        Connections that fail to receive are dropped.

        Returns:
            Number of connections the payload was delivered to
        """
        message = {"event": RECEIVE_EVENT, "data": payload}
        delivered = 0
        for connection_id, websocket in list(self._connections.items()):
            try:
                await websocket.send_json(message)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning("Dropping connection %s after failed send: %s", connection_id, e)
                self.disconnect(connection_id)
        return delivered

    async def close_all(self) -> None:
        for connection_id, websocket in list(self._connections.items()):
            try:
                await websocket.close()
            except RuntimeError:
                logger.debug("Connection %s already closed", connection_id)
            self.disconnect(connection_id)

    @property
    def connection_count(self) -> int:
        return len(self._connections)
