"""Reserve ledger exports"""

from .models import BalanceSnapshot, LedgerEntry, Reconciliation, TransactionType, WalletEndpoint
from .service import LedgerService

__all__ = [
    "BalanceSnapshot",
    "LedgerEntry",
    "Reconciliation",
    "TransactionType",
    "WalletEndpoint",
    "LedgerService",
]
