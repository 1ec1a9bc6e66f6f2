"""Application facade over the exchange domain services.

Each public coroutine runs as one unit of work: a fresh ``AsyncSession`` with
a single transaction, the domain services bound to it, commit on success and
rollback on any error. Lost races surface as ``ConcurrencyConflictError`` and
the whole unit is replayed a bounded number of times. Events are broadcast
only once the transaction has committed.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exchange_server.core.clock import Clock, utcnow
from exchange_server.core.config import Settings, get_settings
from exchange_server.modules.common.exceptions import ConcurrencyConflictError, ValidationError
from exchange_server.modules.common.money import to_decimal
from exchange_server.modules.ledger import BalanceSnapshot, LedgerEntry, LedgerService, Reconciliation
from exchange_server.modules.notifications import ChangeNotifier, EventType, Subscription
from exchange_server.modules.orders import (
    Order,
    OrderCreateInput,
    OrderOutcome,
    OrderProcessor,
    OrderService,
    OrderStatus,
)
from exchange_server.modules.rates import (
    CurrencyLimitRecord,
    EffectiveLimits,
    ExchangeRateChange,
    ExchangeRateRecord,
    Quote,
    RateService,
    derive_limits,
)
from exchange_server.modules.restrictions import (
    CustomerRestriction,
    RestrictionPolicy,
    RestrictionService,
    parse_identifier,
)
from exchange_server.modules.system import PaymentWalletRecord, SystemService, SystemState

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTO_COMPLETE_ACTOR = "system:auto-complete"


def to_payload(value: Any) -> Any:
    """Render domain objects as JSON-friendly structures for event messages."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_payload(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    if isinstance(value, dict):
        return {key: to_payload(item) for key, item in value.items()}
    return value


@dataclass(slots=True)
class UnitOfWork:
    session: AsyncSession
    ledger: LedgerService
    rates: RateService
    restrictions: RestrictionService
    system: SystemService
    orders: OrderService


class ExchangeEngine:
    """Entry point for every exchange operation."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Optional[ChangeNotifier] = None,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.notifier = notifier or ChangeNotifier(self.settings.websocket.queue_size)
        self.clock = clock
        self.policy = RestrictionPolicy(
            threshold=self.settings.restrictions.cancellation_threshold,
            window=timedelta(hours=self.settings.restrictions.window_hours),
            cooldown=timedelta(hours=self.settings.restrictions.cooldown_hours),
        )
        self.processor = OrderProcessor(
            self.settings.exchange.auto_complete_minutes * 60,
            self._auto_complete,
        )

    # ------------------------------------------------------------------ orders

    async def create_order(self, payload: OrderCreateInput) -> Order:
        outcome = await self._run(lambda uow: uow.orders.create(payload))
        self._broadcast(EventType.NEW_ORDER, to_payload(outcome.order))
        self._broadcast_entries(outcome.entries)
        return outcome.order

    async def advance_order(self, order_id: str, target_status: OrderStatus | str, actor: str) -> Order:
        target = self._parse_status(target_status)
        outcome = await self._run(lambda uow: uow.orders.advance(order_id, target, actor))
        self._after_transition(outcome, actor)
        return outcome.order

    async def cancel_order(
        self,
        order_id: str,
        actor: str,
        *,
        only_from: Optional[OrderStatus] = None,
        owner: Optional[str] = None,
    ) -> Order:
        outcome = await self._run(lambda uow: uow.orders.cancel(order_id, actor, only_from=only_from, owner=owner))
        self._after_transition(outcome, actor)
        return outcome.order

    async def get_order(self, order_id: str) -> Order:
        return await self._run(lambda uow: uow.orders.get(order_id))

    async def list_orders(self, status: Optional[str] = None, limit: int = 100, offset: int = 0) -> list[Order]:
        return await self._run(lambda uow: uow.orders.list_orders(status, limit, offset))

    async def list_order_transactions(self, order_id: str) -> list[LedgerEntry]:
        async def op(uow: UnitOfWork) -> list[LedgerEntry]:
            await uow.orders.get(order_id)
            return await uow.ledger.list_transactions(order_id=order_id, limit=1000)

        return await self._run(op)

    # ------------------------------------------------------------ rates/limits

    async def quote(self, from_currency: str, to_currency: str) -> tuple[Quote, EffectiveLimits]:
        async def op(uow: UnitOfWork) -> tuple[Quote, EffectiveLimits]:
            quote = await uow.rates.resolve(from_currency, to_currency)
            reserve = await uow.ledger.get_balance(quote.to_currency)
            return quote, derive_limits(quote, reserve)

        return await self._run(op)

    async def get_effective_limits(self, from_currency: str, to_currency: str) -> EffectiveLimits:
        _, limits = await self.quote(from_currency, to_currency)
        return limits

    async def set_exchange_rate(
        self,
        from_currency: str,
        to_currency: str,
        new_rate: Decimal | str | float,
        actor: str,
        reason: Optional[str] = None,
    ) -> ExchangeRateRecord:
        rate = self._parse_decimal(new_rate, "Exchange rate")
        record = await self._run(lambda uow: uow.rates.set_rate(from_currency, to_currency, rate, actor, reason))
        self._broadcast(
            EventType.EXCHANGE_RATE_UPDATE,
            {**to_payload(record), "updated_by": actor, "reason": reason},
        )
        return record

    async def list_rates(self) -> list[ExchangeRateRecord]:
        return await self._run(lambda uow: uow.rates.list_rates())

    async def rate_history(
        self,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        limit: int = 100,
    ) -> list[ExchangeRateChange]:
        return await self._run(lambda uow: uow.rates.list_history(from_currency, to_currency, limit))

    async def set_currency_limit(
        self,
        from_currency: str,
        to_currency: str,
        min_amount: Decimal | str | float,
        max_amount: Decimal | str | float,
        actor: str,
    ) -> CurrencyLimitRecord:
        low = self._parse_decimal(min_amount, "Minimum amount")
        high = self._parse_decimal(max_amount, "Maximum amount")
        record = await self._run(lambda uow: uow.rates.set_limit(from_currency, to_currency, low, high))
        logger.info("Limits %s/%s set to %s..%s by %s", record.from_currency, record.to_currency, low, high, actor)
        self._broadcast(EventType.CURRENCY_LIMIT_UPDATE, {**to_payload(record), "updated_by": actor})
        return record

    async def list_limits(self) -> list[CurrencyLimitRecord]:
        return await self._run(lambda uow: uow.rates.list_limits())

    # ---------------------------------------------------------------- balances

    async def set_balance(
        self,
        currency: str,
        amount: Decimal | str | float,
        actor: str,
        reason: Optional[str] = None,
    ) -> Optional[LedgerEntry]:
        value = self._parse_decimal(amount, "Balance")
        entry = await self._run(lambda uow: uow.ledger.set_balance(currency, value, actor, reason))
        if entry is not None:
            self._broadcast_entries([entry])
        return entry

    async def credit(
        self,
        currency: str,
        amount: Decimal | str | float,
        actor: str,
        reason: Optional[str] = None,
    ) -> LedgerEntry:
        value = self._parse_decimal(amount, "Amount")
        entry = await self._run(lambda uow: uow.ledger.credit(currency, value, actor, reason))
        self._broadcast_entries([entry])
        return entry

    async def debit(
        self,
        currency: str,
        amount: Decimal | str | float,
        actor: str,
        reason: Optional[str] = None,
    ) -> LedgerEntry:
        value = self._parse_decimal(amount, "Amount")
        entry = await self._run(lambda uow: uow.ledger.debit(currency, value, actor, reason))
        self._broadcast_entries([entry])
        return entry

    async def get_balance(self, currency: str) -> Decimal:
        return await self._run(lambda uow: uow.ledger.get_balance(currency))

    async def list_balances(self) -> list[BalanceSnapshot]:
        return await self._run(lambda uow: uow.ledger.list_balances())

    async def list_transactions(
        self,
        currency: Optional[str] = None,
        order_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        return await self._run(
            lambda uow: uow.ledger.list_transactions(currency=currency, order_id=order_id, limit=limit, offset=offset)
        )

    async def reconcile(self, currency: str) -> Reconciliation:
        return await self._run(lambda uow: uow.ledger.reconcile(currency))

    # ------------------------------------------------------------ restrictions

    async def get_restriction(self, identifier: str) -> Optional[CustomerRestriction]:
        key = parse_identifier(identifier)
        return await self._run(lambda uow: uow.restrictions.get(key))

    async def clear_restriction(self, identifier: str, actor: str) -> Optional[CustomerRestriction]:
        key = parse_identifier(identifier)
        restriction = await self._run(lambda uow: uow.restrictions.clear(key))
        if restriction is not None:
            logger.info("Restriction for %s lifted by %s", key, actor)
        return restriction

    # ------------------------------------------------------------------ system

    async def get_system_status(self) -> SystemState:
        return await self._run(lambda uow: uow.system.get_status())

    async def set_system_status(self, status: str, actor: str) -> SystemState:
        state = await self._run(lambda uow: uow.system.set_status(status, actor))
        self._broadcast(EventType.SYSTEM_STATUS_UPDATE, {"status": state, "updated_by": actor})
        return state

    async def set_payment_wallet(self, method: str, address: str, actor: str) -> PaymentWalletRecord:
        record = await self._run(lambda uow: uow.system.set_payment_wallet(method, address))
        logger.info("Payment wallet for %s updated by %s", record.method, actor)
        return record

    async def list_payment_wallets(self) -> list[PaymentWalletRecord]:
        return await self._run(lambda uow: uow.system.list_payment_wallets())

    # ------------------------------------------------------------------ events

    def subscribe(self, subscriber_id: Optional[str] = None) -> Subscription:
        return self.notifier.subscribe(subscriber_id)

    async def shutdown(self) -> None:
        await self.processor.shutdown()

    # ---------------------------------------------------------------- plumbing

    def _unit_of_work(self, session: AsyncSession) -> UnitOfWork:
        exchange = self.settings.exchange
        ledger = LedgerService.with_session(session)
        rates = RateService.with_session(
            session,
            default_min_amount=exchange.default_min_amount,
            default_max_amount=exchange.default_max_amount,
        )
        restrictions = RestrictionService.with_session(session, self.policy, self.clock)
        system = SystemService.with_session(session)
        orders = OrderService.with_session(
            session,
            ledger=ledger,
            rates=rates,
            restrictions=restrictions,
            system=system,
            order_id_prefix=exchange.order_id_prefix,
            clock=self.clock,
        )
        return UnitOfWork(session, ledger, rates, restrictions, system, orders)

    async def _run(self, op: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        retries = max(0, self.settings.exchange.max_retries)
        attempt = 0
        while True:
            try:
                return await self._attempt(op)
            except ConcurrencyConflictError as exc:
                if attempt >= retries:
                    logger.warning("Giving up after %s retries: %s", attempt, exc.message)
                    raise
                attempt += 1
                logger.info("Concurrency conflict (%s), retry %s/%s", exc.message, attempt, retries)
                await asyncio.sleep(self.settings.exchange.retry_backoff_seconds * attempt)

    async def _attempt(self, op: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    return await op(self._unit_of_work(session))
        except IntegrityError as exc:
            raise ConcurrencyConflictError("A concurrent write collided with this operation") from exc
        except OperationalError as exc:
            if not _is_lock_error(exc):
                raise
            raise ConcurrencyConflictError("The database is busy, please retry") from exc

    def _broadcast(self, event_type: EventType, data: dict[str, Any]) -> None:
        self.notifier.broadcast(event_type, data, timestamp=self.clock())

    def _after_transition(self, outcome: OrderOutcome, actor: str) -> None:
        order = outcome.order
        if order.status is OrderStatus.PROCESSING:
            self.processor.start_timer(order.order_id)
        elif order.status.is_terminal:
            self.processor.clear_timer(order.order_id)

        self._broadcast(
            EventType.STATUS_CHANGE,
            {
                "order_id": order.order_id,
                "old_status": outcome.previous_status.value if outcome.previous_status else None,
                "new_status": order.status.value,
                "actor": actor,
            },
        )
        self._broadcast(EventType.ORDER_UPDATE, to_payload(order))
        self._broadcast_entries(outcome.entries)

    def _broadcast_entries(self, entries: list[LedgerEntry]) -> None:
        for entry in entries:
            self._broadcast(
                EventType.BALANCE_UPDATE,
                {
                    "currency": entry.currency,
                    "balance": str(entry.balance_after),
                    "transaction": to_payload(entry),
                },
            )

    async def _auto_complete(self, order_id: str) -> Order:
        return await self.advance_order(order_id, OrderStatus.COMPLETED, AUTO_COMPLETE_ACTOR)

    @staticmethod
    def _parse_status(value: OrderStatus | str) -> OrderStatus:
        try:
            return OrderStatus(value)
        except ValueError as exc:
            raise ValidationError(f"Unknown order status: {value}") from exc

    @staticmethod
    def _parse_decimal(value: Decimal | str | float, label: str) -> Decimal:
        try:
            result = to_decimal(value)
        except (ArithmeticError, ValueError, TypeError) as exc:
            raise ValidationError(f"{label} must be a number") from exc
        if not result.is_finite():
            raise ValidationError(f"{label} must be a number")
        return result


def _is_lock_error(exc: OperationalError) -> bool:
    text = str(exc.orig or exc).lower()
    return "locked" in text or "busy" in text


__all__ = ["ExchangeEngine", "UnitOfWork", "AUTO_COMPLETE_ACTOR", "to_payload"]
