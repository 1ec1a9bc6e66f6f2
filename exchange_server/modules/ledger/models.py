"""Domain models for reserve ledger operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    HOLD = "HOLD"
    RELEASE = "RELEASE"
    PAYOUT = "PAYOUT"
    ADJUSTMENT = "ADJUSTMENT"


class WalletEndpoint(str, Enum):
    EXCHANGE_RESERVE = "exchange_reserve"
    ORDER_HOLD = "order_hold"
    CUSTOMER = "customer"
    OPERATOR = "operator"


@dataclass(slots=True)
class BalanceSnapshot:
    currency: str
    amount: Decimal
    updated_at: Optional[datetime]


@dataclass(slots=True)
class LedgerEntry:
    id: int
    order_id: Optional[str]
    type: TransactionType
    currency: str
    amount: Decimal
    balance_delta: Decimal
    balance_after: Decimal
    from_wallet: str
    to_wallet: str
    description: Optional[str]
    actor: Optional[str]
    created_at: datetime


@dataclass(slots=True)
class Reconciliation:
    currency: str
    balance: Decimal
    ledger_total: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.balance == self.ledger_total
