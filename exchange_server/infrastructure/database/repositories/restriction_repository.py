"""SQLAlchemy implementation for customer restrictions"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import utcnow
from exchange_server.db.models import CustomerRestriction, Order
from exchange_server.modules.common.exceptions import ConcurrencyConflictError


class SqlRestrictionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, customer_identifier: str) -> CustomerRestriction | None:
        stmt = (
            select(CustomerRestriction)
            .where(CustomerRestriction.customer_identifier == customer_identifier)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(self, customer_identifier: str) -> CustomerRestriction:
        row = CustomerRestriction(
            customer_identifier=customer_identifier,
            cancellation_count=0,
            window_count=0,
            updated_at=utcnow(),
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConcurrencyConflictError("Customer restriction was created concurrently") from exc
        return row

    async def update_if_unchanged(
        self,
        customer_identifier: str,
        *,
        expected_count: int,
        cancellation_count: int,
        window_count: int,
        window_started_at: datetime | None,
        last_cancellation_at: datetime | None,
        restricted_until: datetime | None,
    ) -> CustomerRestriction | None:
        stmt = (
            update(CustomerRestriction)
            .where(CustomerRestriction.customer_identifier == customer_identifier)
            .where(CustomerRestriction.cancellation_count == expected_count)
            .values(
                cancellation_count=cancellation_count,
                window_count=window_count,
                window_started_at=window_started_at,
                last_cancellation_at=last_cancellation_at,
                restricted_until=restricted_until,
                updated_at=utcnow(),
            )
            .returning(CustomerRestriction)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_cancellations_after(self, customer_identifier: str, after: datetime) -> int:
        stmt = (
            select(func.count(Order.id))
            .where(Order.customer_identifier == customer_identifier)
            .where(Order.status == "cancelled")
            .where(Order.cancelled_at > after)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def clear(self, customer_identifier: str, cleared_at: datetime) -> CustomerRestriction | None:
        stmt = (
            update(CustomerRestriction)
            .where(CustomerRestriction.customer_identifier == customer_identifier)
            .values(restricted_until=None, window_count=0, window_started_at=cleared_at, updated_at=utcnow())
            .returning(CustomerRestriction)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
