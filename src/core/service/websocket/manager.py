"""WebSocket connection manager for pushing state changes to the UI."""

import asyncio
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

from src.api.models.response_models import AuthStateResponseDTO
from src.core.logger.logger import logger
from src.core.service.auth.models.user import AuthState
from src.core.service.notifications.notifier import Notice


def state_message(state: AuthState) -> Dict[str, Any]:
    return {"type": "state", "data": AuthStateResponseDTO.from_state(state).model_dump(mode="json")}


def notice_message(notice: Notice) -> Dict[str, Any]:
    return {"type": "notice", "data": notice.model_dump(mode="json")}


class ConnectionManager:
    """Manages WebSocket connections and broadcasting."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []
        self._pending: Set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket, initial: Optional[Dict[str, Any]] = None):
        """
        Accept a new WebSocket connection.

        Args:
            websocket: The WebSocket connection
            initial: Message sent to this client right after accepting
        """
        await websocket.accept()
        self.active_connections.append(websocket)

        if initial is not None:
            await websocket.send_json(initial)

        logger.info("New WebSocket client connected")

    def disconnect(self, websocket: WebSocket):
        """
        Remove a WebSocket connection.

        Args:
            websocket: The WebSocket connection to remove
        """
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info("WebSocket client disconnected")

    async def broadcast(self, data: dict):
        """
        Broadcast a message to all connected clients.

        Args:
            data: The data to broadcast (will be JSON serialized)
        """
        disconnected = []
        for connection in list(self.active_connections):
            try:
                await connection.send_json(data)
            except Exception:
                # If send fails, mark for disconnection
                disconnected.append(connection)

        # Clean up disconnected clients
        for connection in disconnected:
            self.disconnect(connection)

    def publish(self, data: dict) -> None:
        """Schedule a broadcast from synchronous code such as store listeners."""
        if not self.active_connections:
            return
        task = asyncio.get_running_loop().create_task(self.broadcast(data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def publish_state(self, state: AuthState) -> None:
        self.publish(state_message(state))

    def publish_notice(self, notice: Notice) -> None:
        self.publish(notice_message(notice))

    def get_connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self.active_connections)
