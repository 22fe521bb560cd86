# routers/realtime.py
import json
import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from core.exceptions import Unauthorized
from core.security import user_id_from_token
from schemas.events import ONLINE_USERS
from services.notifier import Notifier
from services.presence import PresenceRegistry

router = APIRouter(tags=["Realtime"])
logger = logging.getLogger("uvicorn.error")


class Connection:
    """Живое WebSocket-соединение как адресат событий."""

    def __init__(self, websocket: WebSocket, user_id: int) -> None:
        self.id = uuid.uuid4().hex
        self.user_id = user_id
        self._websocket = websocket

    async def send_event(self, event: str, payload: Any) -> None:
        await self._websocket.send_json({"event": event, "data": payload})

    def __repr__(self):
        return f"<Connection {self.id} user={self.user_id}>"


@router.websocket("/ws")
async def live_connection(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
):
    try:
        user_id = user_id_from_token(token)
    except Unauthorized:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    registry: PresenceRegistry = websocket.app.state.presence
    notifier: Notifier = websocket.app.state.notifier

    await websocket.accept()
    connection = Connection(websocket, user_id)
    registry.register(user_id, connection)
    logger.info("User %s connected via %s", user_id, connection.id)
    notifier.broadcast(ONLINE_USERS, registry.snapshot())

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                # бинарные кадры не поддерживаются и пропускаются
                continue
            try:
                frame = json.loads(text)
            except ValueError:
                logger.debug("Ignoring malformed frame from connection %s", connection.id)
                continue
            if isinstance(frame, dict) and frame.get("event") == "ping":
                await connection.send_event("pong", None)
    except WebSocketDisconnect:
        pass
    finally:
        registry.unregister(connection)
        logger.info("User %s disconnected from %s", user_id, connection.id)
        notifier.broadcast(ONLINE_USERS, registry.snapshot())
