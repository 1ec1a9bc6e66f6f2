"""Order lifecycle state machine.

An order only changes status through this service, and every status change
that moves reserve money is paired with its ledger entry inside the same
database transaction. The status write is conditional on the status that was
read, so two requests racing on one order cannot both apply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import Clock, utcnow
from exchange_server.db.models import Order as OrderModel
from exchange_server.infrastructure.database.repositories.order_repository import SqlOrderRepository
from exchange_server.modules.common.exceptions import (
    ConcurrencyConflictError,
    InvalidTransitionError,
    NotFoundError,
    RestrictedCustomerError,
    SystemUnavailableError,
    ValidationError,
)
from exchange_server.modules.common.money import from_cents, normalize_currency, quantize_amount, to_cents
from exchange_server.modules.ledger import LedgerEntry, LedgerService, TransactionType
from exchange_server.modules.rates import RateService, derive_limits, receive_amount_for
from exchange_server.modules.restrictions import RestrictionService, normalize_identifier
from exchange_server.modules.system import SystemService

from .models import ALLOWED_TRANSITIONS, Order, OrderCreateInput, OrderStatus
from .repository import OrderRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OrderOutcome:
    order: Order
    previous_status: Optional[OrderStatus] = None
    entries: list[LedgerEntry] = field(default_factory=list)


@dataclass(slots=True)
class OrderService:
    repository: OrderRepository
    ledger: LedgerService
    rates: RateService
    restrictions: RestrictionService
    system: SystemService
    order_id_prefix: str = "DGL"
    clock: Clock = utcnow

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        *,
        ledger: LedgerService,
        rates: RateService,
        restrictions: RestrictionService,
        system: SystemService,
        order_id_prefix: str = "DGL",
        clock: Clock = utcnow,
    ) -> "OrderService":
        return cls(SqlOrderRepository(session), ledger, rates, restrictions, system, order_id_prefix, clock)

    async def create(self, payload: OrderCreateInput) -> OrderOutcome:
        full_name = (payload.full_name or "").strip()
        wallet_address = (payload.wallet_address or "").strip()
        if not full_name:
            raise ValidationError("Full name is required")
        if not wallet_address:
            raise ValidationError(f"A {payload.receive_method} wallet address is required")
        identifier = normalize_identifier(payload.phone_number, payload.email)

        if await self.system.get_status() == "off":
            raise SystemUnavailableError("The exchange is not accepting new orders right now")

        restriction = await self.restrictions.get(identifier)
        if restriction is not None and restriction.is_active(self.clock()):
            hours = self.restrictions.hours_remaining(restriction)
            raise RestrictedCustomerError(
                f"You have reached the maximum cancellation limit. You can place orders again in {hours} hours."
            )

        send_method = normalize_currency(payload.send_method)
        receive_method = normalize_currency(payload.receive_method)
        if send_method == receive_method:
            raise ValidationError("Send and receive methods must differ")

        send_amount = quantize_amount(payload.send_amount)
        quote = await self.rates.resolve(send_method, receive_method)
        reserve = await self.ledger.get_balance(receive_method)
        limits = derive_limits(quote, reserve)
        if send_amount < limits.min_amount:
            raise ValidationError(f"Minimum send amount is {limits.min_amount} {send_method}")
        if send_amount > limits.max_amount:
            raise ValidationError(f"Maximum send amount is {limits.max_amount} {send_method}")

        receive_amount = receive_amount_for(send_amount, quote.rate)
        if receive_amount <= 0:
            raise ValidationError("Send amount is too small to convert")

        model = await self.repository.create(
            order_id_prefix=self.order_id_prefix,
            full_name=full_name,
            phone_number=payload.phone_number.strip(),
            email=payload.email.strip() if payload.email else None,
            sender_account=payload.sender_account,
            wallet_address=wallet_address,
            customer_identifier=identifier,
            send_method=send_method,
            receive_method=receive_method,
            send_amount_cents=to_cents(send_amount),
            receive_amount_cents=to_cents(receive_amount),
            exchange_rate=quote.rate,
            hold_amount_cents=to_cents(receive_amount),
            payment_wallet=await self.system.payment_wallet_for(send_method),
            created_at=self.clock(),
        )
        entry = await self.ledger.adjust(
            receive_method,
            TransactionType.HOLD,
            receive_amount,
            model.order_id,
            f"Order created - {receive_amount} {receive_method} held from reserve",
        )
        logger.info(
            "Order %s created: %s %s -> %s %s at %s",
            model.order_id,
            send_amount,
            send_method,
            receive_amount,
            receive_method,
            quote.rate,
        )
        return OrderOutcome(order=self._to_domain(model), entries=[entry])

    async def get(self, order_id: str) -> Order:
        model = await self.repository.get(order_id)
        if model is None:
            raise NotFoundError(f"Order {order_id} not found")
        return self._to_domain(model)

    async def list_orders(self, status: Optional[str] = None, limit: int = 100, offset: int = 0) -> list[Order]:
        rows = await self.repository.list_orders(status=status, limit=limit, offset=offset)
        return [self._to_domain(row) for row in rows]

    async def advance(self, order_id: str, target: OrderStatus, actor: str) -> OrderOutcome:
        if target is OrderStatus.CANCELLED:
            return await self.cancel(order_id, actor)
        order = await self.get(order_id)
        self._check_transition(order, target)

        if target is not OrderStatus.COMPLETED:
            updated = await self._claim(order, target, hold_amount=order.hold_amount)
            logger.info("Order %s: %s -> %s by %s", order_id, order.status.value, target.value, actor)
            return OrderOutcome(order=updated, previous_status=order.status)

        now = self.clock()
        updated = await self._claim(order, target, hold_amount=Decimal("0"), completed_at=now)
        entry = await self.ledger.adjust(
            order.receive_method,
            TransactionType.PAYOUT,
            order.receive_amount,
            order.order_id,
            f"Order completed - {order.receive_amount} {order.receive_method} paid to customer",
            held=order.hold_amount,
            actor=actor,
        )
        logger.info("Order %s completed by %s", order_id, actor)
        return OrderOutcome(order=updated, previous_status=order.status, entries=[entry])

    async def cancel(
        self,
        order_id: str,
        actor: str,
        *,
        only_from: Optional[OrderStatus] = None,
        owner: Optional[str] = None,
    ) -> OrderOutcome:
        """Cancel an order and release its hold.

        ``owner`` is the normalized phone number or e-mail a customer proves
        ownership with; an order that does not belong to it reads as missing.
        """
        order = await self.get(order_id)
        if owner is not None and owner not in self._owner_keys(order):
            raise NotFoundError(f"Order {order_id} not found")
        if only_from is not None and order.status is not only_from:
            raise InvalidTransitionError(
                f"Order {order_id} is {order.status.value} and can no longer be cancelled here"
            )
        self._check_transition(order, OrderStatus.CANCELLED)

        updated = await self._claim(order, OrderStatus.CANCELLED, hold_amount=Decimal("0"), cancelled_at=self.clock())
        entries: list[LedgerEntry] = []
        if order.hold_amount > 0:
            entries.append(
                await self.ledger.adjust(
                    order.receive_method,
                    TransactionType.RELEASE,
                    order.hold_amount,
                    order.order_id,
                    f"Order cancelled - {order.hold_amount} {order.receive_method} restored to reserve",
                    actor=actor,
                )
            )
        await self.restrictions.record_cancellation(order.customer_identifier)
        logger.info("Order %s cancelled by %s", order_id, actor)
        return OrderOutcome(order=updated, previous_status=order.status, entries=entries)

    async def _claim(self, order: Order, target: OrderStatus, *, hold_amount: Decimal, **stamps) -> Order:
        model = await self.repository.transition(
            order.order_id,
            expected_status=order.status.value,
            status=target.value,
            hold_amount_cents=to_cents(hold_amount),
            updated_at=self.clock(),
            **stamps,
        )
        if model is None:
            raise ConcurrencyConflictError(f"Order {order.order_id} changed while it was being updated")
        return self._to_domain(model)

    @staticmethod
    def _owner_keys(order: Order) -> set[str]:
        keys = {order.customer_identifier}
        if order.email and order.email.strip():
            keys.add(normalize_identifier(email=order.email))
        return keys

    @staticmethod
    def _check_transition(order: Order, target: OrderStatus) -> None:
        if order.status is target and order.status.is_terminal:
            raise InvalidTransitionError(f"Order {order.order_id} is already {order.status.value}")
        if target not in ALLOWED_TRANSITIONS[order.status]:
            raise InvalidTransitionError(
                f"Order {order.order_id} cannot move from {order.status.value} to {target.value}"
            )

    @staticmethod
    def _to_domain(model: OrderModel) -> Order:
        return Order(
            id=model.id,
            order_id=model.order_id,
            full_name=model.full_name,
            phone_number=model.phone_number,
            email=model.email,
            sender_account=model.sender_account,
            wallet_address=model.wallet_address,
            customer_identifier=model.customer_identifier,
            send_method=model.send_method,
            receive_method=model.receive_method,
            send_amount=from_cents(model.send_amount_cents),
            receive_amount=from_cents(model.receive_amount_cents),
            exchange_rate=Decimal(model.exchange_rate),
            hold_amount=from_cents(model.hold_amount_cents),
            status=OrderStatus(model.status),
            payment_wallet=model.payment_wallet,
            created_at=model.created_at,
            updated_at=model.updated_at,
            completed_at=model.completed_at,
            cancelled_at=model.cancelled_at,
        )
