"""Exchange rate and limit resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.db.models import (
    CurrencyLimit as CurrencyLimitModel,
    ExchangeRate as ExchangeRateModel,
    ExchangeRateHistory as ExchangeRateHistoryModel,
)
from exchange_server.infrastructure.database.repositories.rate_repository import SqlRateRepository
from exchange_server.modules.common.exceptions import UntradablePairError, ValidationError
from exchange_server.modules.common.money import (
    ceil_amount,
    floor_amount,
    from_cents,
    normalize_currency,
    quantize_amount,
    quantize_rate,
    to_cents,
)

from .models import CurrencyLimitRecord, EffectiveLimits, ExchangeRateChange, ExchangeRateRecord, Quote
from .repository import RateRepository

logger = logging.getLogger(__name__)

DEFAULT_MIN_AMOUNT = Decimal("5")
DEFAULT_MAX_AMOUNT = Decimal("10000")
# smallest send whose half-up rounded receive amount is still one cent
_SMALLEST_RECEIVE = Decimal("0.005")


def receive_amount_for(send_amount: Decimal, rate: Decimal) -> Decimal:
    return quantize_amount(send_amount * rate)


def derive_limits(quote: Quote, reserve_balance: Decimal) -> EffectiveLimits:
    """Bound a send amount by configuration and by what the reserve can pay out."""
    reserve_max = floor_amount(reserve_balance / quote.rate) if reserve_balance > 0 else Decimal("0.00")
    min_amount = max(quantize_amount(quote.min_amount), ceil_amount(_SMALLEST_RECEIVE / quote.rate))
    return EffectiveLimits(
        min_amount=min_amount,
        max_amount=min(quantize_amount(quote.max_amount), reserve_max),
        reserve_balance=reserve_balance,
    )


@dataclass(slots=True)
class RateService:
    repository: RateRepository
    default_min_amount: Decimal = DEFAULT_MIN_AMOUNT
    default_max_amount: Decimal = DEFAULT_MAX_AMOUNT

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        *,
        default_min_amount: Decimal = DEFAULT_MIN_AMOUNT,
        default_max_amount: Decimal = DEFAULT_MAX_AMOUNT,
    ) -> "RateService":
        return cls(SqlRateRepository(session), default_min_amount, default_max_amount)

    async def resolve(self, from_currency: str, to_currency: str) -> Quote:
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)
        rate = await self.repository.get_rate(from_currency, to_currency)
        if rate is None or rate.rate is None or rate.rate <= 0:
            raise UntradablePairError(f"Exchange rate not available for {from_currency} to {to_currency}")

        limit = await self.repository.get_limit(from_currency, to_currency)
        if limit is None:
            min_amount, max_amount = self.default_min_amount, self.default_max_amount
        else:
            min_amount, max_amount = from_cents(limit.min_amount_cents), from_cents(limit.max_amount_cents)

        return Quote(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=Decimal(rate.rate),
            min_amount=min_amount,
            max_amount=max_amount,
        )

    async def set_rate(
        self,
        from_currency: str,
        to_currency: str,
        new_rate: Decimal,
        actor: str,
        reason: Optional[str] = None,
    ) -> ExchangeRateRecord:
        from_currency = normalize_currency(from_currency)
        to_currency = normalize_currency(to_currency)
        if from_currency == to_currency:
            raise ValidationError("A pair needs two different currencies")
        new_rate = quantize_rate(new_rate)
        if new_rate <= 0:
            raise ValidationError("Exchange rate must be positive")

        existing = await self.repository.get_rate(from_currency, to_currency)
        old_rate = Decimal(existing.rate) if existing is not None else None
        await self.repository.add_history(
            from_currency=from_currency,
            to_currency=to_currency,
            old_rate=old_rate,
            new_rate=new_rate,
            changed_by=actor,
            change_reason=reason if reason or old_rate is not None else "Initial rate setup",
        )
        model = await self.repository.save_rate(from_currency, to_currency, new_rate)
        logger.info("Rate %s/%s: %s -> %s (by %s)", from_currency, to_currency, old_rate, new_rate, actor)
        return self._to_rate(model)

    async def list_rates(self) -> list[ExchangeRateRecord]:
        return [self._to_rate(row) for row in await self.repository.list_rates()]

    async def list_history(
        self,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        limit: int = 100,
    ) -> list[ExchangeRateChange]:
        rows = await self.repository.list_history(
            normalize_currency(from_currency) if from_currency else None,
            normalize_currency(to_currency) if to_currency else None,
            limit,
        )
        return [self._to_change(row) for row in rows]

    async def set_limit(
        self,
        from_currency: str,
        to_currency: str,
        min_amount: Decimal,
        max_amount: Decimal,
    ) -> CurrencyLimitRecord:
        if min_amount < 0 or max_amount < 0 or min_amount >= max_amount:
            raise ValidationError(
                "Invalid limits. Minimum must be less than maximum and both must be positive numbers."
            )
        model = await self.repository.save_limit(
            normalize_currency(from_currency),
            normalize_currency(to_currency),
            to_cents(min_amount),
            to_cents(max_amount),
        )
        return self._to_limit(model)

    async def list_limits(self) -> list[CurrencyLimitRecord]:
        return [self._to_limit(row) for row in await self.repository.list_limits()]

    @staticmethod
    def _to_rate(model: ExchangeRateModel) -> ExchangeRateRecord:
        return ExchangeRateRecord(
            from_currency=model.from_currency,
            to_currency=model.to_currency,
            rate=Decimal(model.rate),
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_change(model: ExchangeRateHistoryModel) -> ExchangeRateChange:
        return ExchangeRateChange(
            id=model.id,
            from_currency=model.from_currency,
            to_currency=model.to_currency,
            old_rate=Decimal(model.old_rate) if model.old_rate is not None else None,
            new_rate=Decimal(model.new_rate),
            changed_by=model.changed_by,
            change_reason=model.change_reason,
            changed_at=model.changed_at,
        )

    @staticmethod
    def _to_limit(model: CurrencyLimitModel) -> CurrencyLimitRecord:
        return CurrencyLimitRecord(
            from_currency=model.from_currency,
            to_currency=model.to_currency,
            min_amount=from_cents(model.min_amount_cents),
            max_amount=from_cents(model.max_amount_cents),
            updated_at=model.updated_at,
        )
