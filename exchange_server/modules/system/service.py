"""Order intake switch and operator deposit wallets."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.infrastructure.database.repositories.system_repository import SqlSystemRepository
from exchange_server.modules.common.exceptions import ValidationError
from exchange_server.modules.common.money import normalize_currency

from .models import UNKNOWN_WALLET, PaymentWalletRecord, SystemState
from .repository import SystemRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SystemService:
    repository: SystemRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "SystemService":
        return cls(SqlSystemRepository(session))

    async def get_status(self) -> SystemState:
        row = await self.repository.get_status()
        return "off" if row is not None and row.status == "off" else "on"

    async def set_status(self, status: str, actor: str) -> SystemState:
        if status not in {"on", "off"}:
            raise ValidationError("System status must be 'on' or 'off'")
        await self.repository.save_status(status, actor)
        logger.info("System status set to %s by %s", status, actor)
        return "on" if status == "on" else "off"

    async def payment_wallet_for(self, method: str) -> str:
        row = await self.repository.get_wallet(normalize_currency(method))
        return row.address if row is not None else UNKNOWN_WALLET

    async def set_payment_wallet(self, method: str, address: str) -> PaymentWalletRecord:
        address = address.strip()
        if not address:
            raise ValidationError("Wallet address is required")
        row = await self.repository.save_wallet(normalize_currency(method), address)
        return PaymentWalletRecord(method=row.method, address=row.address, updated_at=row.updated_at)

    async def list_payment_wallets(self) -> list[PaymentWalletRecord]:
        rows = await self.repository.list_wallets()
        return [PaymentWalletRecord(method=row.method, address=row.address, updated_at=row.updated_at) for row in rows]
