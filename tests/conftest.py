"""Shared fixtures: a throwaway on-disk SQLite database and an engine bound to it."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from exchange_server.core.config import DatabaseSettings, ExchangeSettings, SecuritySettings, Settings
from exchange_server.infrastructure.database.session import build_engine, build_session_factory, create_tables
from exchange_server.modules.notifications import ChangeNotifier
from exchange_server.modules.orders import OrderCreateInput
from exchange_server.services import ExchangeEngine

ADMIN = "admin"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'exchange.db'}", busy_timeout=10.0),
        security=SecuritySettings(secret_key="test-secret-key"),
        exchange=ExchangeSettings(max_retries=25, retry_backoff_seconds=0.01),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest_asyncio.fixture
async def db_engine(settings):
    engine = build_engine(settings.database)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier(queue_size=64)


@pytest_asyncio.fixture
async def engine(session_factory, notifier, settings, clock):
    exchange = ExchangeEngine(session_factory, notifier, settings, clock)
    yield exchange
    await exchange.shutdown()


@pytest_asyncio.fixture
async def seeded(engine):
    """A -> B at 0.93 and B -> A at 1.075, with 10000 of each in reserve."""
    await engine.set_exchange_rate("A", "B", Decimal("0.93"), ADMIN)
    await engine.set_exchange_rate("B", "A", Decimal("1.075"), ADMIN)
    await engine.set_balance("A", Decimal("10000"), ADMIN)
    await engine.set_balance("B", Decimal("10000"), ADMIN)
    return engine


def order_input(send_amount: str = "100", phone: str = "+252 63 123 4567", **overrides) -> OrderCreateInput:
    values = dict(
        full_name="Amina Yusuf",
        phone_number=phone,
        wallet_address="wallet-b-001",
        send_method="A",
        receive_method="B",
        send_amount=Decimal(send_amount),
        email="amina@example.com",
    )
    values.update(overrides)
    return OrderCreateInput(**values)


@pytest.fixture
def make_order():
    return order_input
