"""SQLAlchemy implementation for system status and payment wallets"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import utcnow
from exchange_server.db.models import PaymentWallet, SystemStatus
from exchange_server.modules.common.exceptions import ConcurrencyConflictError


class SqlSystemRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_status(self) -> SystemStatus | None:
        result = await self.session.execute(select(SystemStatus).limit(1))
        return result.scalars().first()

    async def save_status(self, status: str, updated_by: str) -> SystemStatus:
        row = await self.get_status()
        if row is None:
            row = SystemStatus(id=1)
            self.session.add(row)
        row.status = status
        row.updated_by = updated_by
        row.updated_at = utcnow()
        await self._flush()
        return row

    async def get_wallet(self, method: str) -> PaymentWallet | None:
        result = await self.session.execute(select(PaymentWallet).where(PaymentWallet.method == method))
        return result.scalars().first()

    async def save_wallet(self, method: str, address: str) -> PaymentWallet:
        row = await self.get_wallet(method)
        if row is None:
            row = PaymentWallet(method=method)
            self.session.add(row)
        row.address = address
        row.updated_at = utcnow()
        await self._flush()
        return row

    async def list_wallets(self) -> Sequence[PaymentWallet]:
        result = await self.session.execute(select(PaymentWallet).order_by(PaymentWallet.method))
        return result.scalars().all()

    async def _flush(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConcurrencyConflictError("System settings were written concurrently") from exc
