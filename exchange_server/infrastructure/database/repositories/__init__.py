"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .ledger_repository import SqlLedgerRepository
from .order_repository import SqlOrderRepository
from .rate_repository import SqlRateRepository
from .restriction_repository import SqlRestrictionRepository
from .system_repository import SqlSystemRepository

__all__ = [
    "SqlAccountRepository",
    "SqlLedgerRepository",
    "SqlOrderRepository",
    "SqlRateRepository",
    "SqlRestrictionRepository",
    "SqlSystemRepository",
]
