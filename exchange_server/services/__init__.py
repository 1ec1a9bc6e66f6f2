"""Application services composed from the domain modules."""

from .exchange_engine import AUTO_COMPLETE_ACTOR, ExchangeEngine, UnitOfWork, to_payload

__all__ = ["AUTO_COMPLETE_ACTOR", "ExchangeEngine", "UnitOfWork", "to_payload"]
