"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)

from exchange_server.core.clock import utcnow
from exchange_server.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="admin")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    last_login_at = Column(DateTime)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    # assigned from the primary key right after insert, inside the same transaction
    order_id = Column(String(40), unique=True, index=True)
    full_name = Column(String(150), nullable=False)
    phone_number = Column(String(40), nullable=False)
    email = Column(String(150))
    sender_account = Column(String(150))
    wallet_address = Column(String(255), nullable=False)
    customer_identifier = Column(String(150), nullable=False, index=True)
    send_method = Column(String(20), nullable=False)
    receive_method = Column(String(20), nullable=False)
    send_amount_cents = Column(BigInteger, nullable=False)
    receive_amount_cents = Column(BigInteger, nullable=False)
    exchange_rate = Column(Numeric(18, 6, asdecimal=True), nullable=False)
    hold_amount_cents = Column(BigInteger, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending", index=True)
    payment_wallet = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)


class Balance(Base):
    __tablename__ = "balances"

    currency = Column(String(20), primary_key=True)
    amount_cents = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(40), index=True)
    type = Column(String(20), nullable=False)  # HOLD, RELEASE, PAYOUT, ADJUSTMENT
    currency = Column(String(20), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    balance_delta_cents = Column(BigInteger, nullable=False)
    balance_after_cents = Column(BigInteger, nullable=False)
    from_wallet = Column(String(40), nullable=False)
    to_wallet = Column(String(40), nullable=False)
    description = Column(String(255))
    actor = Column(String(100))
    created_at = Column(DateTime, nullable=False, default=utcnow)


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"
    __table_args__ = (UniqueConstraint("from_currency", "to_currency", name="uq_exchange_rates_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_currency = Column(String(20), nullable=False)
    to_currency = Column(String(20), nullable=False)
    rate = Column(Numeric(18, 6, asdecimal=True), nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class ExchangeRateHistory(Base):
    __tablename__ = "exchange_rate_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_currency = Column(String(20), nullable=False, index=True)
    to_currency = Column(String(20), nullable=False, index=True)
    old_rate = Column(Numeric(18, 6, asdecimal=True))
    new_rate = Column(Numeric(18, 6, asdecimal=True), nullable=False)
    changed_by = Column(String(100), nullable=False)
    change_reason = Column(Text)
    changed_at = Column(DateTime, nullable=False, default=utcnow)


class CurrencyLimit(Base):
    __tablename__ = "currency_limits"
    __table_args__ = (UniqueConstraint("from_currency", "to_currency", name="uq_currency_limits_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_currency = Column(String(20), nullable=False)
    to_currency = Column(String(20), nullable=False)
    min_amount_cents = Column(BigInteger, nullable=False, default=500)
    max_amount_cents = Column(BigInteger, nullable=False, default=1_000_000)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class CustomerRestriction(Base):
    __tablename__ = "customer_restrictions"

    customer_identifier = Column(String(150), primary_key=True)
    cancellation_count = Column(Integer, nullable=False, default=0)
    window_count = Column(Integer, nullable=False, default=0)
    window_started_at = Column(DateTime)
    last_cancellation_at = Column(DateTime)
    restricted_until = Column(DateTime)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class PaymentWallet(Base):
    __tablename__ = "payment_wallets"

    method = Column(String(20), primary_key=True)
    address = Column(String(255), nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class SystemStatus(Base):
    __tablename__ = "system_status"

    id = Column(Integer, primary_key=True, default=1)
    status = Column(String(10), nullable=False, default="on")
    updated_by = Column(String(100))
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
