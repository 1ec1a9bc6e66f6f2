"""SQLAlchemy implementation for the reserve ledger"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import utcnow
from exchange_server.db.models import Balance, Transaction
from exchange_server.modules.common.exceptions import ConcurrencyConflictError


class SqlLedgerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_balance(self, currency: str) -> Balance | None:
        stmt = (
            select(Balance)
            .where(Balance.currency == currency)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_balance(self, currency: str) -> Balance:
        balance = Balance(currency=currency, amount_cents=0, updated_at=utcnow())
        self.session.add(balance)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # another request created the row first; the whole unit is retried
            raise ConcurrencyConflictError(f"Balance row for {currency} was created concurrently") from exc
        return balance

    async def apply_delta(self, currency: str, delta_cents: int) -> int | None:
        """Move the balance by ``delta_cents`` unless it would go negative.

        The guard lives in the WHERE clause so the check and the write are a
        single statement against the row. Returns the new amount, or ``None``
        when the guard rejected the update.
        """
        stmt = (
            update(Balance)
            .where(Balance.currency == currency)
            .where(Balance.amount_cents + delta_cents >= 0)
            .values(amount_cents=Balance.amount_cents + delta_cents, updated_at=utcnow())
            .returning(Balance.amount_cents)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

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
    ) -> Transaction:
        tx = Transaction(
            order_id=order_id,
            type=type,
            currency=currency,
            amount_cents=amount_cents,
            balance_delta_cents=balance_delta_cents,
            balance_after_cents=balance_after_cents,
            from_wallet=from_wallet,
            to_wallet=to_wallet,
            description=description,
            actor=actor,
            created_at=utcnow(),
        )
        self.session.add(tx)
        await self.session.flush()
        return tx

    async def list_balances(self) -> Sequence[Balance]:
        stmt = select(Balance).order_by(Balance.currency).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_transactions(
        self,
        *,
        currency: str | None,
        order_id: str | None,
        limit: int,
        offset: int,
    ) -> Sequence[Transaction]:
        stmt = select(Transaction)
        if currency:
            stmt = stmt.where(Transaction.currency == currency)
        if order_id:
            stmt = stmt.where(Transaction.order_id == order_id)
        stmt = stmt.order_by(desc(Transaction.id)).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def sum_deltas(self, currency: str) -> int:
        stmt = select(func.coalesce(func.sum(Transaction.balance_delta_cents), 0)).where(
            Transaction.currency == currency
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
