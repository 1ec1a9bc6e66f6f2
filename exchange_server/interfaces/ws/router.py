"""Live event stream for operator dashboards and order tracking pages."""
import json
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from exchange_server.interfaces.ws.manager import get_connection_manager

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_PING = "ping"
MESSAGE_PONG = "pong"


@router.websocket("/ws")
async def events_socket(websocket: WebSocket):
    manager = get_connection_manager()
    client_id = f"ws-{uuid.uuid4().hex[:12]}"
    await manager.connect(client_id, websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON frame from %s", client_id)
                continue
            if isinstance(message, dict) and message.get("type") == MESSAGE_PING:
                await manager.send_message(client_id, {"type": MESSAGE_PONG})
    except WebSocketDisconnect:
        logger.info("Websocket client %s closed the connection", client_id)
    finally:
        await manager.disconnect(client_id)
