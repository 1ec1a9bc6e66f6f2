"""Pydantic schemas used across the project."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from exchange_server.modules.accounts.models import OperatorRole
from exchange_server.modules.ledger.models import TransactionType
from exchange_server.modules.orders.models import OrderStatus


class AdminLoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)


class AccountLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account_id: str
    username: str
    role: str


class TokenData(BaseModel):
    account_id: str
    username: str
    role: str


class AccountResponse(BaseModel):
    id: str
    username: str
    role: OperatorRole
    is_active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    code: str
    message: str


# Orders


class OrderCreate(BaseModel):
    full_name: str = Field(..., max_length=150)
    phone_number: str = Field(..., max_length=40)
    email: Optional[str] = Field(default=None, max_length=150)
    sender_account: Optional[str] = Field(default=None, max_length=150)
    wallet_address: str = Field(..., max_length=255)
    send_method: str = Field(..., min_length=1, max_length=20)
    receive_method: str = Field(..., min_length=1, max_length=20)
    send_amount: Decimal


class OrderCancelRequest(BaseModel):
    phone_number: Optional[str] = Field(default=None, max_length=40)
    email: Optional[str] = Field(default=None, max_length=150)


class OrderResponse(BaseModel):
    order_id: str
    full_name: str
    phone_number: str
    email: Optional[str] = None
    sender_account: Optional[str] = None
    wallet_address: str
    send_method: str
    receive_method: str
    send_amount: Decimal
    receive_amount: Decimal
    exchange_rate: Decimal
    hold_amount: Decimal
    status: OrderStatus
    payment_wallet: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    total: int
    orders: list[OrderResponse]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# Ledger


class TransactionResponse(BaseModel):
    id: int
    order_id: Optional[str] = None
    type: TransactionType
    currency: str
    amount: Decimal
    balance_delta: Decimal
    balance_after: Decimal
    from_wallet: str
    to_wallet: str
    description: Optional[str] = None
    actor: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    total: int
    transactions: list[TransactionResponse]


class BalanceResponse(BaseModel):
    currency: str
    amount: Decimal
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BalanceSetRequest(BaseModel):
    amount: Decimal
    reason: Optional[str] = Field(default=None, max_length=255)


class BalanceAdjustRequest(BaseModel):
    amount: Decimal
    reason: Optional[str] = Field(default=None, max_length=255)


class BalanceChangeResponse(BaseModel):
    currency: str
    balance: Decimal
    transaction: Optional[TransactionResponse] = None


class ReconciliationResponse(BaseModel):
    currency: str
    balance: Decimal
    ledger_total: Decimal
    is_balanced: bool

    model_config = ConfigDict(from_attributes=True)


# Rates and limits


class ExchangeRateQuoteResponse(BaseModel):
    from_currency: str
    to_currency: str
    rate: Decimal
    min_amount: Decimal
    max_amount: Decimal
    reserve_balance: Decimal


class ExchangeRateUpdate(BaseModel):
    from_currency: str = Field(..., min_length=1, max_length=20)
    to_currency: str = Field(..., min_length=1, max_length=20)
    rate: Decimal
    reason: Optional[str] = None


class ExchangeRateResponse(BaseModel):
    from_currency: str
    to_currency: str
    rate: Decimal
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ExchangeRateHistoryResponse(BaseModel):
    id: int
    from_currency: str
    to_currency: str
    old_rate: Optional[Decimal] = None
    new_rate: Decimal
    changed_by: str
    change_reason: Optional[str] = None
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CurrencyLimitUpdate(BaseModel):
    from_currency: str = Field(..., min_length=1, max_length=20)
    to_currency: str = Field(..., min_length=1, max_length=20)
    min_amount: Decimal
    max_amount: Decimal


class CurrencyLimitResponse(BaseModel):
    from_currency: str
    to_currency: str
    min_amount: Decimal
    max_amount: Decimal
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Restrictions, wallets, system


class RestrictionResponse(BaseModel):
    customer_identifier: str
    cancellation_count: int
    last_cancellation_at: Optional[datetime] = None
    restricted_until: Optional[datetime] = None
    is_restricted: bool = False

    model_config = ConfigDict(from_attributes=True)


class PaymentWalletUpdate(BaseModel):
    address: str = Field(..., min_length=1, max_length=255)


class PaymentWalletResponse(BaseModel):
    method: str
    address: str
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SystemStatusUpdate(BaseModel):
    status: Literal["on", "off"]


class SystemStatusResponse(BaseModel):
    status: Literal["on", "off"]


class WSMessage(BaseModel):
    type: str
    data: Any = None
    timestamp: Optional[str] = None
