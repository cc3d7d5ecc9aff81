"""
WebSocket endpoint for live chat delivery.

Clients connect to /ws?token=<access token>. Frames are JSON envelopes
{"event": ..., "data": {...}} in both directions.
"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession
import json
import uuid
import logging

from rentals.database import get_db
from rentals.services.auth import AuthService
from rentals.services.messaging import MessagingService
from rentals.services.realtime import ConnectionManager, conversation_room, get_connection_manager

logger = logging.getLogger(__name__)

# Application-defined close code for failed authentication
WS_CLOSE_UNAUTHORIZED = 4401

router = APIRouter(tags=["Realtime"])


def _conversation_id(data: Any) -> Optional[uuid.UUID]:
    if not isinstance(data, dict):
        return None
    try:
        return uuid.UUID(str(data.get("conversation_id")))
    except ValueError:
        return None


async def dispatch_frame(
    websocket: WebSocket,
    user_id: uuid.UUID,
    frame: Any,
    connection_manager: ConnectionManager,
    messaging_service: MessagingService
) -> None:
    """Handle one client frame."""
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        await connection_manager.send(websocket, "error", {"message": "Frames must be {\"event\": ..., \"data\": {...}}"})
        return
    
    event = frame["event"]
    data = frame.get("data") or {}
    
    if event == "ping":
        await connection_manager.send(websocket, "pong", {})
    
    elif event == "conversation:join":
        conversation_id = _conversation_id(data)
        if conversation_id is None:
            await connection_manager.send(websocket, "error", {"message": "conversation_id is required"})
            return
        if not await messaging_service.can_join(conversation_id, user_id):
            logger.warning(f"User {user_id} refused join of conversation {conversation_id}")
            await connection_manager.send(
                websocket, "error", {"message": "Not a participant of this conversation", "conversation_id": conversation_id}
            )
            return
        connection_manager.join(websocket, conversation_room(conversation_id))
        await connection_manager.send(websocket, "conversation:joined", {"conversation_id": conversation_id})
    
    elif event == "conversation:leave":
        conversation_id = _conversation_id(data)
        if conversation_id is None:
            await connection_manager.send(websocket, "error", {"message": "conversation_id is required"})
            return
        connection_manager.leave(websocket, conversation_room(conversation_id))
    
    else:
        await connection_manager.send(websocket, "error", {"message": f"Unknown event: {event}"})


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    connection_manager: ConnectionManager = Depends(get_connection_manager)
):
    user = await AuthService(db).validate_token(token) if token else None
    if user is None:
        await websocket.accept()
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return
    
    user_id = user.id
    messaging_service = MessagingService(db, connection_manager)
    # Release the connection between frames; the socket may stay open for hours
    await db.close()
    
    await connection_manager.connect(websocket, user_id)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except ValueError:
                await connection_manager.send(websocket, "error", {"message": "Invalid JSON"})
                continue
            await dispatch_frame(websocket, user_id, frame, connection_manager, messaging_service)
            await db.close()
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user_id}")
    finally:
        connection_manager.disconnect(websocket)
