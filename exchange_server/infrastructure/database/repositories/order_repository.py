"""SQLAlchemy implementation for exchange orders"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import utcnow
from exchange_server.db.models import Order


class SqlOrderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        *,
        order_id_prefix: str,
        full_name: str,
        phone_number: str,
        email: str | None,
        sender_account: str | None,
        wallet_address: str,
        customer_identifier: str,
        send_method: str,
        receive_method: str,
        send_amount_cents: int,
        receive_amount_cents: int,
        exchange_rate: Decimal,
        hold_amount_cents: int,
        payment_wallet: str,
        created_at: datetime,
    ) -> Order:
        order = Order(
            full_name=full_name,
            phone_number=phone_number,
            email=email,
            sender_account=sender_account,
            wallet_address=wallet_address,
            customer_identifier=customer_identifier,
            send_method=send_method,
            receive_method=receive_method,
            send_amount_cents=send_amount_cents,
            receive_amount_cents=receive_amount_cents,
            exchange_rate=exchange_rate,
            hold_amount_cents=hold_amount_cents,
            status="pending",
            payment_wallet=payment_wallet,
            created_at=created_at,
            updated_at=created_at,
        )
        self.session.add(order)
        await self.session.flush()
        # the autoincrement key is never reused, so the readable id is unique too
        order.order_id = f"{order_id_prefix}-{created_at.year}-{order.id:06d}"
        await self.session.flush()
        return order

    async def get(self, order_id: str) -> Order | None:
        stmt = select(Order).where(Order.order_id == order_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_orders(self, *, status: str | None, limit: int, offset: int) -> Sequence[Order]:
        stmt = select(Order)
        if status and status != "all":
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(desc(Order.id)).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def transition(
        self,
        order_id: str,
        *,
        expected_status: str,
        status: str,
        hold_amount_cents: int,
        completed_at: datetime | None = None,
        cancelled_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> Order | None:
        values: dict = {"status": status, "hold_amount_cents": hold_amount_cents, "updated_at": updated_at or utcnow()}
        if completed_at is not None:
            values["completed_at"] = completed_at
        if cancelled_at is not None:
            values["cancelled_at"] = cancelled_at
        stmt = (
            update(Order)
            .where(Order.order_id == order_id, Order.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session="fetch")
            .returning(Order)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
