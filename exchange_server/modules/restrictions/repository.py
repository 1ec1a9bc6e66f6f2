"""Repository protocol for customer restrictions."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from exchange_server.db.models import CustomerRestriction as CustomerRestrictionModel


class RestrictionRepository(Protocol):
    async def get(self, customer_identifier: str) -> CustomerRestrictionModel | None:
        ...

    async def create(self, customer_identifier: str) -> CustomerRestrictionModel:
        ...

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
    ) -> CustomerRestrictionModel | None:
        ...

    async def count_cancellations_after(self, customer_identifier: str, after: datetime) -> int:
        ...

    async def clear(self, customer_identifier: str, cleared_at: datetime) -> CustomerRestrictionModel | None:
        ...
