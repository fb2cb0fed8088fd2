# backend/app/core/websocket_manager.py
"""
Live connection registry.

One process-wide ``ConnectionRegistry`` is created at application start and
handed to the websocket endpoint and the notification dispatcher through
``app.state``. Each user has at most one live socket: a reconnect replaces
the previous entry (last writer wins).
"""
import asyncio
from typing import Any, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from app.core.logging import logger


class ConnectionRegistry:
    """Maps user id -> open websocket"""

    def __init__(self):
        self._connections: Dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = websocket
        if previous is not None and previous is not websocket:
            await self._close_quietly(previous)
        logger.info("Realtime connection registered", extra={"user_id": user_id})

    async def unregister(self, user_id: str, websocket: WebSocket) -> bool:
        """Drop the entry only if it still points at ``websocket``"""
        async with self._lock:
            if self._connections.get(user_id) is websocket:
                del self._connections[user_id]
                removed = True
            else:
                removed = False
        if removed:
            logger.info("Realtime connection closed", extra={"user_id": user_id})
        return removed

    def is_connected(self, user_id: str) -> bool:
        return user_id in self._connections

    def get(self, user_id: str) -> Optional[WebSocket]:
        return self._connections.get(user_id)

    async def send(self, user_id: str, payload: Dict[str, Any]) -> bool:
        """Push a frame to a user. False when not connected or the socket is broken."""
        websocket = self._connections.get(user_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(payload)
            return True
        except Exception as e:
            # Any transport failure means the socket is gone
            logger.warning(
                f"Realtime push failed, dropping connection: {e}",
                extra={"user_id": user_id},
            )
            await self.unregister(user_id, websocket)
            return False

    async def close_all(self) -> None:
        async with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
        for websocket in connections:
            await self._close_quietly(websocket)

    async def _close_quietly(self, websocket: WebSocket) -> None:
        if websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            await websocket.close(code=1000)
        except RuntimeError:
            # Already closing on the other side
            pass

    def __len__(self) -> int:
        return len(self._connections)
