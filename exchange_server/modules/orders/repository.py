"""Repository protocol for exchange orders."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from exchange_server.db.models import Order as OrderModel


class OrderRepository(Protocol):
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
    ) -> OrderModel:
        ...

    async def get(self, order_id: str) -> OrderModel | None:
        ...

    async def list_orders(self, *, status: str | None, limit: int, offset: int) -> Sequence[OrderModel]:
        ...

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
    ) -> OrderModel | None:
        ...
