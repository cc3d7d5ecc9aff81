"""
In-process WebSocket fan-out for chat.

Sockets are grouped into rooms: user:{id} for everything addressed to a user and
conv:{id} for everyone currently viewing a conversation. Frames use the
envelope {"event": ..., "data": {...}} in both directions.
"""

from collections import defaultdict
from typing import Any, Dict, Set
from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
import uuid
import logging

logger = logging.getLogger(__name__)


def user_room(user_id: uuid.UUID) -> str:
    return f"user:{user_id}"


def conversation_room(conversation_id: uuid.UUID) -> str:
    return f"conv:{conversation_id}"


class ConnectionManager:
    """Tracks room membership of live sockets for this process only."""
    
    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
    
    async def connect(self, websocket: WebSocket, user_id: uuid.UUID) -> None:
        await websocket.accept()
        self.join(websocket, user_room(user_id))
        logger.info(f"WebSocket connected for user {user_id}")
    
    def join(self, websocket: WebSocket, room: str) -> None:
        self.rooms[room].add(websocket)
    
    def leave(self, websocket: WebSocket, room: str) -> None:
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self.rooms[room]
    
    def disconnect(self, websocket: WebSocket) -> None:
        for room in [name for name, members in self.rooms.items() if websocket in members]:
            self.leave(websocket, room)
    
    def members(self, room: str) -> Set[WebSocket]:
        return set(self.rooms.get(room, ()))
    
    @staticmethod
    def envelope(event: str, data: Any) -> Dict[str, Any]:
        return {"event": event, "data": jsonable_encoder(data)}
    
    async def send(self, websocket: WebSocket, event: str, data: Any) -> None:
        await websocket.send_json(self.envelope(event, data))
    
    async def emit(self, room: str, event: str, data: Any) -> int:
        """
        Send an event to every socket in a room.
        Sockets that fail to receive are dropped from all rooms.
        
        Returns:
            Number of sockets the event was delivered to
        """
        frame = self.envelope(event, data)
        delivered = 0
        for websocket in self.members(room):
            try:
                await websocket.send_json(frame)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping socket in room {room} after failed send: {e}")
                self.disconnect(websocket)
        logger.debug(f"Emitted {event} to {delivered} sockets in {room}")
        return delivered


manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    return manager
