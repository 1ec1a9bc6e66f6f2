"""Repository protocol for system status and payment wallets."""

from __future__ import annotations

from typing import Protocol, Sequence

from exchange_server.db.models import PaymentWallet as PaymentWalletModel, SystemStatus as SystemStatusModel


class SystemRepository(Protocol):
    async def get_status(self) -> SystemStatusModel | None:
        ...

    async def save_status(self, status: str, updated_by: str) -> SystemStatusModel:
        ...

    async def get_wallet(self, method: str) -> PaymentWalletModel | None:
        ...

    async def save_wallet(self, method: str, address: str) -> PaymentWalletModel:
        ...

    async def list_wallets(self) -> Sequence[PaymentWalletModel]:
        ...
