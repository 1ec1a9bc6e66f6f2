"""SQLAlchemy implementation for exchange rates and currency limits"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import utcnow
from exchange_server.db.models import CurrencyLimit, ExchangeRate, ExchangeRateHistory
from exchange_server.modules.common.exceptions import ConcurrencyConflictError


class SqlRateRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_rate(self, from_currency: str, to_currency: str) -> ExchangeRate | None:
        stmt = (
            select(ExchangeRate)
            .where(ExchangeRate.from_currency == from_currency, ExchangeRate.to_currency == to_currency)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def save_rate(self, from_currency: str, to_currency: str, rate: Decimal) -> ExchangeRate:
        model = await self.get_rate(from_currency, to_currency)
        if model is None:
            model = ExchangeRate(from_currency=from_currency, to_currency=to_currency, rate=rate)
            self.session.add(model)
        else:
            model.rate = rate
            model.updated_at = utcnow()
        await self._flush(f"{from_currency}/{to_currency} rate")
        return model

    async def add_history(
        self,
        *,
        from_currency: str,
        to_currency: str,
        old_rate: Decimal | None,
        new_rate: Decimal,
        changed_by: str,
        change_reason: str | None,
    ) -> ExchangeRateHistory:
        row = ExchangeRateHistory(
            from_currency=from_currency,
            to_currency=to_currency,
            old_rate=old_rate,
            new_rate=new_rate,
            changed_by=changed_by,
            change_reason=change_reason,
            changed_at=utcnow(),
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def list_rates(self) -> Sequence[ExchangeRate]:
        stmt = select(ExchangeRate).order_by(ExchangeRate.from_currency, ExchangeRate.to_currency)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_history(
        self, from_currency: str | None, to_currency: str | None, limit: int
    ) -> Sequence[ExchangeRateHistory]:
        stmt = select(ExchangeRateHistory)
        if from_currency:
            stmt = stmt.where(ExchangeRateHistory.from_currency == from_currency)
        if to_currency:
            stmt = stmt.where(ExchangeRateHistory.to_currency == to_currency)
        stmt = stmt.order_by(desc(ExchangeRateHistory.id)).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_limit(self, from_currency: str, to_currency: str) -> CurrencyLimit | None:
        stmt = select(CurrencyLimit).where(
            CurrencyLimit.from_currency == from_currency, CurrencyLimit.to_currency == to_currency
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def save_limit(
        self, from_currency: str, to_currency: str, min_amount_cents: int, max_amount_cents: int
    ) -> CurrencyLimit:
        model = await self.get_limit(from_currency, to_currency)
        if model is None:
            model = CurrencyLimit(from_currency=from_currency, to_currency=to_currency)
            self.session.add(model)
        model.min_amount_cents = min_amount_cents
        model.max_amount_cents = max_amount_cents
        model.updated_at = utcnow()
        await self._flush(f"{from_currency}/{to_currency} limit")
        return model

    async def list_limits(self) -> Sequence[CurrencyLimit]:
        stmt = select(CurrencyLimit).order_by(CurrencyLimit.from_currency, CurrencyLimit.to_currency)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def _flush(self, what: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConcurrencyConflictError(f"{what} was written concurrently") from exc
