"""Fan-out of committed state changes to live subscribers.

Each subscriber owns a bounded FIFO queue. ``broadcast`` never awaits: it
enqueues with ``put_nowait`` so the mutation that triggered it is never held
up by a slow client. A full queue drops that message for that subscriber only.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional

from exchange_server.core.clock import utcnow

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    ORDER_UPDATE = "order_update"
    NEW_ORDER = "new_order"
    NEW_MESSAGE = "new_message"
    STATUS_CHANGE = "status_change"
    EXCHANGE_RATE_UPDATE = "exchange_rate_update"
    CURRENCY_LIMIT_UPDATE = "currency_limit_update"
    BALANCE_UPDATE = "balance_update"
    SYSTEM_STATUS_UPDATE = "system_status_update"


class Subscription:
    def __init__(self, subscriber_id: str, notifier: "ChangeNotifier", maxsize: int) -> None:
        self.id = subscriber_id
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self._notifier = notifier

    async def get(self) -> dict[str, Any]:
        return await self.queue.get()

    def get_nowait(self) -> dict[str, Any]:
        return self.queue.get_nowait()

    def close(self) -> None:
        self._notifier.unsubscribe(self.id)

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            yield await self.queue.get()


class ChangeNotifier:
    def __init__(self, queue_size: int = 256) -> None:
        self.queue_size = queue_size
        self.subscribers: Dict[str, Subscription] = {}
        self._ids = itertools.count(1)

    def subscribe(self, subscriber_id: Optional[str] = None) -> Subscription:
        subscriber_id = subscriber_id or f"sub-{next(self._ids)}"
        subscription = Subscription(subscriber_id, self, self.queue_size)
        self.subscribers[subscriber_id] = subscription
        logger.info("Subscriber %s connected. Total subscribers: %s", subscriber_id, len(self.subscribers))
        return subscription

    def unsubscribe(self, subscriber_id: str) -> None:
        if self.subscribers.pop(subscriber_id, None) is not None:
            logger.info("Subscriber %s disconnected. Total subscribers: %s", subscriber_id, len(self.subscribers))

    def broadcast(
        self,
        event_type: EventType | str,
        data: dict[str, Any],
        timestamp: Optional[datetime] = None,
    ) -> dict[str, Any]:
        message = {
            "type": EventType(event_type).value,
            "data": data,
            "timestamp": (timestamp or utcnow()).isoformat(),
        }
        for subscription in list(self.subscribers.values()):
            try:
                subscription.queue.put_nowait(message)
            except asyncio.QueueFull:
                subscription.dropped += 1
                logger.warning("Subscriber %s queue full, dropped %s event", subscription.id, message["type"])
        return message

    def subscriber_count(self) -> int:
        return len(self.subscribers)
