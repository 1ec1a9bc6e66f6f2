"""Connection manager pumping change events to websocket clients."""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import WebSocket

from exchange_server.modules.notifications import ChangeNotifier, Subscription
from exchange_server.schemas import WSMessage

logger = logging.getLogger(__name__)


class ConnectionManager:
    """One notifier subscription per connected client, drained by its own task."""

    def __init__(self, notifier: ChangeNotifier, heartbeat_interval: float = 30) -> None:
        self.notifier = notifier
        self.heartbeat_interval = heartbeat_interval
        self.connections: Dict[str, WebSocket] = {}
        self.subscriptions: Dict[str, Subscription] = {}
        self.pump_tasks: Dict[str, asyncio.Task] = {}

    async def connect(self, client_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.register(client_id, websocket)

    def register(self, client_id: str, websocket: WebSocket) -> None:
        self.connections[client_id] = websocket
        subscription = self.notifier.subscribe(client_id)
        self.subscriptions[client_id] = subscription
        self.pump_tasks[client_id] = asyncio.create_task(self._pump(client_id, subscription))
        logger.info("Websocket client %s connected", client_id)

    async def disconnect(self, client_id: str) -> None:
        self.connections.pop(client_id, None)
        subscription = self.subscriptions.pop(client_id, None)
        if subscription is not None:
            subscription.close()
        task = self.pump_tasks.pop(client_id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        logger.info("Websocket client %s disconnected", client_id)

    async def send_message(self, client_id: str, message: dict) -> bool:
        websocket = self.connections.get(client_id)
        if websocket is None:
            return False
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Sending to websocket client %s failed: %s", client_id, exc)
            await self.disconnect(client_id)
            return False

    def get_online_count(self) -> int:
        return len(self.connections)

    def is_online(self, client_id: str) -> bool:
        return client_id in self.connections

    async def close_all(self) -> None:
        for client_id in list(self.connections):
            await self.disconnect(client_id)

    async def _pump(self, client_id: str, subscription: Subscription) -> None:
        try:
            while True:
                try:
                    message = await asyncio.wait_for(subscription.get(), timeout=self.heartbeat_interval)
                except asyncio.TimeoutError:
                    message = WSMessage(
                        type="heartbeat", timestamp=datetime.now(timezone.utc).isoformat()
                    ).model_dump()
                if not await self.send_message(client_id, message):
                    break
        except asyncio.CancelledError:
            logger.debug("Event pump for %s cancelled", client_id)


_manager: Optional[ConnectionManager] = None


def get_connection_manager() -> ConnectionManager:
    global _manager
    if _manager is None:
        from exchange_server.core.container import get_container

        container = get_container()
        _manager = ConnectionManager(container.notifier, container.settings.websocket.heartbeat_interval)
    return _manager
