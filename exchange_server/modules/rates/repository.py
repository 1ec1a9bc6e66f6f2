"""Repository protocol for exchange rates and currency limits."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, Sequence

from exchange_server.db.models import (
    CurrencyLimit as CurrencyLimitModel,
    ExchangeRate as ExchangeRateModel,
    ExchangeRateHistory as ExchangeRateHistoryModel,
)


class RateRepository(Protocol):
    async def get_rate(self, from_currency: str, to_currency: str) -> ExchangeRateModel | None:
        ...

    async def save_rate(self, from_currency: str, to_currency: str, rate: Decimal) -> ExchangeRateModel:
        ...

    async def add_history(
        self,
        *,
        from_currency: str,
        to_currency: str,
        old_rate: Decimal | None,
        new_rate: Decimal,
        changed_by: str,
        change_reason: str | None,
    ) -> ExchangeRateHistoryModel:
        ...

    async def list_rates(self) -> Sequence[ExchangeRateModel]:
        ...

    async def list_history(
        self, from_currency: str | None, to_currency: str | None, limit: int
    ) -> Sequence[ExchangeRateHistoryModel]:
        ...

    async def get_limit(self, from_currency: str, to_currency: str) -> CurrencyLimitModel | None:
        ...

    async def save_limit(
        self, from_currency: str, to_currency: str, min_amount_cents: int, max_amount_cents: int
    ) -> CurrencyLimitModel:
        ...

    async def list_limits(self) -> Sequence[CurrencyLimitModel]:
        ...
