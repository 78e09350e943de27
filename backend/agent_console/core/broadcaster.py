# Agent Console - Activity broadcaster
# Fans newly written activity rows out to every open dashboard socket.
# No queue, no replay: a socket that is not open at broadcast time misses the entry.

import json
import logging
from datetime import datetime, timezone
from typing import Set, Tuple

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ActivityBroadcaster:
    """Registry of open WebSocket connections, owned by one app instance."""

    def __init__(self):
        self.connections: Set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self.connections)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.connections.add(websocket)
        logger.info(f"New client connected. Total clients: {len(self.connections)}")
        await websocket.send_json({
            "type": "connected",
            "message": "Connected to activity log stream",
            "timestamp": _now(),
        })

    def disconnect(self, websocket: WebSocket):
        if websocket in self.connections:
            self.connections.discard(websocket)
            logger.info(f"Client disconnected. Total clients: {len(self.connections)}")

    async def handle_message(self, websocket: WebSocket, raw: str):
        """Only keep-alive pings are answered. Everything else is ignored."""
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring non-JSON client message")
            return

        if isinstance(data, dict) and data.get("type") == "ping":
            await websocket.send_json({"type": "pong", "timestamp": _now()})

    async def broadcast(self, entry: dict) -> Tuple[int, int]:
        """
        Send an activity entry to every open socket.
        Returns (sent, failed). Never raises.
        """
        if not self.connections:
            logger.debug("No clients connected, skipping broadcast")
            return 0, 0

        payload = json.dumps({"type": "activity", "data": entry}, default=str)
        sent = 0
        failed = 0

        for connection in list(self.connections):
            if connection.client_state != WebSocketState.CONNECTED:
                self.connections.discard(connection)
                continue
            try:
                await connection.send_text(payload)
                sent += 1
            except Exception as e:
                logger.warning(f"Error sending to client: {e}")
                failed += 1

        logger.info(f"Broadcasted activity log to {sent} client(s), {failed} failed")
        return sent, failed

    async def close_all(self):
        for connection in list(self.connections):
            try:
                await connection.close()
            except Exception as e:
                logger.debug(f"Error closing client: {e}")
        self.connections.clear()
