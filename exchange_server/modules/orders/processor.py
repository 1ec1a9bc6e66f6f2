"""Timed auto-completion of orders that reached ``processing``."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict

from exchange_server.modules.common.exceptions import ExchangeError

logger = logging.getLogger(__name__)

CompleteCallback = Callable[[str], Awaitable[object]]


class OrderProcessor:
    def __init__(self, delay_seconds: float, complete: CompleteCallback) -> None:
        self.delay_seconds = delay_seconds
        self._complete = complete
        self.timers: Dict[str, asyncio.Task] = {}

    @property
    def enabled(self) -> bool:
        return self.delay_seconds > 0

    def start_timer(self, order_id: str) -> None:
        if not self.enabled:
            return
        self.clear_timer(order_id)
        logger.info("Starting %ss processing timer for order %s", self.delay_seconds, order_id)
        self.timers[order_id] = asyncio.create_task(self._run(order_id))

    def clear_timer(self, order_id: str) -> None:
        task = self.timers.pop(order_id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            logger.info("Cleared processing timer for order %s", order_id)

    def is_processing(self, order_id: str) -> bool:
        return order_id in self.timers

    def active_count(self) -> int:
        return len(self.timers)

    async def shutdown(self) -> None:
        tasks = list(self.timers.values())
        self.timers.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, order_id: str) -> None:
        try:
            await asyncio.sleep(self.delay_seconds)
            self.timers.pop(order_id, None)
            await self._complete(order_id)
            logger.info("Order %s automatically completed", order_id)
        except asyncio.CancelledError:
            logger.debug("Processing timer for order %s cancelled", order_id)
        except ExchangeError as exc:
            logger.warning("Auto-completion of order %s rejected: %s", order_id, exc.message)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error auto-completing order %s", order_id)
