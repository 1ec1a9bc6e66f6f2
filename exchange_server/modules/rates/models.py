"""Domain models for exchange rates and per-pair limits."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(slots=True, frozen=True)
class Quote:
    """Rate and configured bounds for one ordered pair at one instant."""

    from_currency: str
    to_currency: str
    rate: Decimal
    min_amount: Decimal
    max_amount: Decimal


@dataclass(slots=True, frozen=True)
class EffectiveLimits:
    min_amount: Decimal
    max_amount: Decimal
    reserve_balance: Decimal

    def allows(self, amount: Decimal) -> bool:
        return self.min_amount <= amount <= self.max_amount


@dataclass(slots=True)
class ExchangeRateRecord:
    from_currency: str
    to_currency: str
    rate: Decimal
    updated_at: Optional[datetime]


@dataclass(slots=True)
class ExchangeRateChange:
    id: int
    from_currency: str
    to_currency: str
    old_rate: Optional[Decimal]
    new_rate: Decimal
    changed_by: str
    change_reason: Optional[str]
    changed_at: datetime


@dataclass(slots=True)
class CurrencyLimitRecord:
    from_currency: str
    to_currency: str
    min_amount: Decimal
    max_amount: Decimal
    updated_at: Optional[datetime]
