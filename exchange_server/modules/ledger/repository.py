"""Repository protocol for reserve ledger operations."""

from __future__ import annotations

from typing import Protocol, Sequence

from exchange_server.db.models import Balance as BalanceModel, Transaction as TransactionModel


class LedgerRepository(Protocol):
    async def get_balance(self, currency: str) -> BalanceModel | None:
        ...

    async def create_balance(self, currency: str) -> BalanceModel:
        ...

    async def apply_delta(self, currency: str, delta_cents: int) -> int | None:
        ...

    async def add_transaction(
        self,
        *,
        order_id: str | None,
        type: str,
        currency: str,
        amount_cents: int,
        balance_delta_cents: int,
        balance_after_cents: int,
        from_wallet: str,
        to_wallet: str,
        description: str | None,
        actor: str | None,
    ) -> TransactionModel:
        ...

    async def list_balances(self) -> Sequence[BalanceModel]:
        ...

    async def list_transactions(
        self,
        *,
        currency: str | None,
        order_id: str | None,
        limit: int,
        offset: int,
    ) -> Sequence[TransactionModel]:
        ...

    async def sum_deltas(self, currency: str) -> int:
        ...
