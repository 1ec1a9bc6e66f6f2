"""Reserve ledger domain service.

The ledger is the only writer of ``balances``. Every adjustment moves exactly
one balance row and appends exactly one transaction row; both statements run
inside the caller's database transaction so they commit or roll back together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.db.models import Balance as BalanceModel, Transaction as TransactionModel
from exchange_server.infrastructure.database.repositories.ledger_repository import SqlLedgerRepository
from exchange_server.modules.common.exceptions import InsufficientReserveError, ValidationError
from exchange_server.modules.common.money import from_cents, normalize_currency, to_cents

from .models import BalanceSnapshot, LedgerEntry, Reconciliation, TransactionType, WalletEndpoint
from .repository import LedgerRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

_ENDPOINTS = {
    TransactionType.HOLD: (WalletEndpoint.EXCHANGE_RESERVE, WalletEndpoint.ORDER_HOLD),
    TransactionType.RELEASE: (WalletEndpoint.ORDER_HOLD, WalletEndpoint.EXCHANGE_RESERVE),
    TransactionType.PAYOUT: (WalletEndpoint.EXCHANGE_RESERVE, WalletEndpoint.CUSTOMER),
}


@dataclass(slots=True)
class LedgerService:
    repository: LedgerRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "LedgerService":
        return cls(SqlLedgerRepository(session))

    async def get_balance(self, currency: str) -> Decimal:
        balance = await self.repository.get_balance(normalize_currency(currency))
        return from_cents(balance.amount_cents) if balance else ZERO

    async def list_balances(self) -> list[BalanceSnapshot]:
        rows = await self.repository.list_balances()
        return [self._to_snapshot(row) for row in rows]

    async def adjust(
        self,
        currency: str,
        type: TransactionType,
        amount: Decimal,
        order_id: Optional[str] = None,
        description: Optional[str] = None,
        *,
        held: Decimal = ZERO,
        credit: bool = True,
        actor: Optional[str] = None,
    ) -> LedgerEntry:
        """Apply one balance-affecting event.

        ``held`` is only meaningful for PAYOUT: the part of the payout already
        reserved by an earlier HOLD, which is retired instead of debited again.
        ``credit`` picks the direction of an ADJUSTMENT.
        """
        currency = normalize_currency(currency)
        amount_cents = to_cents(amount)
        held_cents = to_cents(held)
        if amount_cents <= 0:
            raise ValidationError("Ledger amount must be positive")
        if held_cents < 0 or held_cents > amount_cents:
            raise ValidationError("Held amount must be between zero and the payout amount")

        if type is TransactionType.HOLD:
            delta = -amount_cents
        elif type is TransactionType.RELEASE:
            delta = amount_cents
        elif type is TransactionType.PAYOUT:
            delta = -(amount_cents - held_cents)
        else:
            delta = amount_cents if credit else -amount_cents

        if type is TransactionType.ADJUSTMENT:
            endpoints = (
                (WalletEndpoint.OPERATOR, WalletEndpoint.EXCHANGE_RESERVE)
                if credit
                else (WalletEndpoint.EXCHANGE_RESERVE, WalletEndpoint.OPERATOR)
            )
        else:
            endpoints = _ENDPOINTS[type]

        if await self.repository.get_balance(currency) is None:
            await self.repository.create_balance(currency)

        balance_after = await self.repository.apply_delta(currency, delta)
        if balance_after is None:
            available = await self.get_balance(currency)
            logger.warning(
                "Rejected %s %s %s: available reserve %s (order=%s)",
                type.value,
                from_cents(amount_cents),
                currency,
                available,
                order_id,
            )
            raise InsufficientReserveError(
                f"Insufficient {currency} reserve. Available: {available}, required: {from_cents(-delta)}"
            )

        tx = await self.repository.add_transaction(
            order_id=order_id,
            type=type.value,
            currency=currency,
            amount_cents=amount_cents,
            balance_delta_cents=delta,
            balance_after_cents=balance_after,
            from_wallet=endpoints[0].value,
            to_wallet=endpoints[1].value,
            description=description,
            actor=actor,
        )
        logger.info(
            "Ledger %s %s %s (order=%s), balance now %s",
            type.value,
            from_cents(amount_cents),
            currency,
            order_id,
            from_cents(balance_after),
        )
        return self._to_entry(tx)

    async def set_balance(
        self,
        currency: str,
        amount: Decimal,
        actor: str,
        reason: Optional[str] = None,
    ) -> Optional[LedgerEntry]:
        """Administrative override, recorded as an adjustment of the difference."""
        if amount < 0:
            raise ValidationError("Balance cannot be set to a negative amount")
        current = await self.get_balance(currency)
        difference = amount - current
        if difference == 0:
            return None
        return await self.adjust(
            currency,
            TransactionType.ADJUSTMENT,
            abs(difference),
            description=reason or f"Balance set to {amount} by {actor}",
            credit=difference > 0,
            actor=actor,
        )

    async def credit(self, currency: str, amount: Decimal, actor: str, reason: Optional[str] = None) -> LedgerEntry:
        return await self.adjust(
            currency,
            TransactionType.ADJUSTMENT,
            amount,
            description=reason or "Manual credit by admin",
            credit=True,
            actor=actor,
        )

    async def debit(self, currency: str, amount: Decimal, actor: str, reason: Optional[str] = None) -> LedgerEntry:
        return await self.adjust(
            currency,
            TransactionType.ADJUSTMENT,
            amount,
            description=reason or "Manual debit by admin",
            credit=False,
            actor=actor,
        )

    async def list_transactions(
        self,
        *,
        currency: Optional[str] = None,
        order_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        rows = await self.repository.list_transactions(
            currency=normalize_currency(currency) if currency else None,
            order_id=order_id,
            limit=limit,
            offset=offset,
        )
        return [self._to_entry(row) for row in rows]

    async def reconcile(self, currency: str) -> Reconciliation:
        currency = normalize_currency(currency)
        balance = await self.get_balance(currency)
        total = await self.repository.sum_deltas(currency)
        return Reconciliation(currency=currency, balance=balance, ledger_total=from_cents(total))

    @staticmethod
    def _to_snapshot(model: BalanceModel) -> BalanceSnapshot:
        return BalanceSnapshot(
            currency=model.currency,
            amount=from_cents(model.amount_cents),
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_entry(model: TransactionModel) -> LedgerEntry:
        return LedgerEntry(
            id=model.id,
            order_id=model.order_id,
            type=TransactionType(model.type),
            currency=model.currency,
            amount=from_cents(model.amount_cents),
            balance_delta=from_cents(model.balance_delta_cents),
            balance_after=from_cents(model.balance_after_cents),
            from_wallet=model.from_wallet,
            to_wallet=model.to_wallet,
            description=model.description,
            actor=model.actor,
            created_at=model.created_at,
        )
