"""Per-user real-time delivery over WebSockets.

Every authenticated socket joins the room of its user id; ``send_to_user``
fans an event out to every socket in that room. A user with no open
sockets is simply skipped: the stored notification is picked up on the
next poll.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Protocol, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)


class RealtimeChannel(Protocol):
    async def send_to_user(self, user_id: str, event: str, payload: Dict[str, Any]) -> None:
        ...


class ConnectionManager:
    def __init__(self):
        self._rooms: Dict[str, Set[WebSocket]] = defaultdict(set)

    async def connect(self, user_id: str, websocket: WebSocket):
        await websocket.accept()
        self._rooms[user_id].add(websocket)
        logger.debug("User %s joined room (%d sockets)", user_id, len(self._rooms[user_id]))

    def disconnect(self, user_id: str, websocket: WebSocket):
        room = self._rooms.get(user_id)
        if not room:
            return
        room.discard(websocket)
        if not room:
            del self._rooms[user_id]

    def connection_count(self, user_id: str) -> int:
        return len(self._rooms.get(user_id, ()))

    async def send_to_user(self, user_id: str, event: str, payload: Dict[str, Any]):
        for websocket in list(self._rooms.get(user_id, ())):
            try:
                await websocket.send_json({"event": event, "data": payload})
            except (WebSocketDisconnect, RuntimeError):
                logger.info("Dropping stale socket for user %s", user_id)
                self.disconnect(user_id, websocket)
