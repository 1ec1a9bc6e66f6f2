"""Reusable FastAPI dependencies."""

from .account import get_account_service
from .database import get_db_session
from .engine import get_exchange_engine

__all__ = [
    "get_db_session",
    "get_account_service",
    "get_exchange_engine",
]
