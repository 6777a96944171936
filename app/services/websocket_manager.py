import asyncio
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Per-user channels: every authenticated socket joins the set keyed by its user id"""

    def __init__(self):
        # Store active connections by user_id
        self.active_connections: Dict[int, Set[WebSocket]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[asyncio.Future] = set()

    def bind_loop(self, loop: asyncio.AbstractEventLoop):
        """Remember the server loop so publishes from worker threads can reach it"""
        self._loop = loop

    def subscribe(self, websocket: WebSocket, user_id: int):
        if user_id not in self.active_connections:
            self.active_connections[user_id] = set()

        self.active_connections[user_id].add(websocket)
        logger.info(f"User {user_id} subscribed. Connections: {len(self.active_connections[user_id])}")

    def disconnect(self, websocket: WebSocket, user_id: int):
        """Drop a socket from its user's channel"""
        if user_id in self.active_connections:
            self.active_connections[user_id].discard(websocket)

            # Remove user if no more connections
            if not self.active_connections[user_id]:
                del self.active_connections[user_id]

            logger.info(f"User {user_id} disconnected. Remaining connections: {self.get_connection_count(user_id)}")

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        await websocket.send_text(json.dumps(message, default=str))

    async def send_to_user(self, user_id: int, message: dict):
        """Send a message to all connections of a specific user"""
        if user_id not in self.active_connections:
            logger.info(f"User {user_id} not connected, skipping live delivery")
            return

        disconnected_websockets = set()
        for websocket in list(self.active_connections.get(user_id, ())):
            try:
                await self.send_personal_message(message, websocket)
            except Exception as e:
                logger.error(f"Error sending to user {user_id}: {e}")
                disconnected_websockets.add(websocket)

        # Clean up disconnected websockets
        for websocket in disconnected_websockets:
            self.disconnect(websocket, user_id)

    def publish(self, user_id: int, event: str, payload: dict):
        """Schedule delivery of an event to a user's channel without waiting for it.

        A user with no subscribed connection is a no-op; the notification is
        still readable from the inbox.
        """
        if user_id not in self.active_connections:
            logger.debug(f"No live connection for user {user_id}, {event} not pushed")
            return

        message = {
            "type": event,
            "data": payload,
            "timestamp": datetime.utcnow().isoformat(),
        }
        coro = self.send_to_user(user_id, message)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            future = loop.create_task(coro)
        elif self._loop is not None and self._loop.is_running():
            future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        else:
            coro.close()
            logger.warning(f"No event loop available, {event} for user {user_id} not pushed")
            return

        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    def get_connected_users(self) -> List[int]:
        return list(self.active_connections.keys())

    def get_connection_count(self, user_id: int) -> int:
        return len(self.active_connections.get(user_id, set()))

    def get_total_connections(self) -> int:
        return sum(len(connections) for connections in self.active_connections.values())

# Global instance
websocket_manager = WebSocketManager()
