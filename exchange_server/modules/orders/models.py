"""Domain models for exchange orders."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass(slots=True)
class Order:
    id: int
    order_id: str
    full_name: str
    phone_number: str
    email: Optional[str]
    sender_account: Optional[str]
    wallet_address: str
    customer_identifier: str
    send_method: str
    receive_method: str
    send_amount: Decimal
    receive_amount: Decimal
    exchange_rate: Decimal
    hold_amount: Decimal
    status: OrderStatus
    payment_wallet: str
    created_at: datetime
    updated_at: Optional[datetime]
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


@dataclass(slots=True)
class OrderCreateInput:
    full_name: str
    phone_number: str
    wallet_address: str
    send_method: str
    receive_method: str
    send_amount: Decimal
    email: Optional[str] = None
    sender_account: Optional[str] = None
