"""Exchange engine dependency."""

from exchange_server.core.container import get_container
from exchange_server.services import ExchangeEngine


def get_exchange_engine() -> ExchangeEngine:
    return get_container().engine


__all__ = ["get_exchange_engine"]
