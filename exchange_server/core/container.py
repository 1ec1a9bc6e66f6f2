"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from exchange_server.core.config import Settings, get_settings
from exchange_server.infrastructure.database.session import get_engine, get_session_factory
from exchange_server.modules.notifications import ChangeNotifier
from exchange_server.services import ExchangeEngine


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    notifier: ChangeNotifier = field(init=False)
    engine: ExchangeEngine = field(init=False)

    def __post_init__(self) -> None:
        self.notifier = ChangeNotifier(self.settings.websocket.queue_size)

    def init_infrastructure(self) -> None:
        """Create the database engine and the exchange engine bound to it."""
        get_engine()
        self.engine = ExchangeEngine(get_session_factory(), self.notifier, self.settings)

    async def shutdown(self) -> None:
        await self.engine.shutdown()


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
