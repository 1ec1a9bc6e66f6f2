import asyncio
from decimal import Decimal

import pytest

from exchange_server.modules.common.exceptions import InsufficientReserveError, ValidationError
from exchange_server.modules.ledger import LedgerService, TransactionType


async def test_set_balance_records_the_difference(engine):
    first = await engine.set_balance("usdc", "250.50", "admin")
    assert first.type is TransactionType.ADJUSTMENT
    assert first.balance_delta == Decimal("250.50")
    assert first.from_wallet == "operator"

    second = await engine.set_balance("USDC", "200", "admin", "count correction")
    assert second.balance_delta == Decimal("-50.50")
    assert second.balance_after == Decimal("200.00")
    assert second.to_wallet == "operator"
    assert second.description == "count correction"

    assert await engine.set_balance("USDC", "200", "admin") is None
    assert await engine.get_balance("usdc") == Decimal("200.00")


async def test_negative_balance_target_is_rejected(engine):
    with pytest.raises(ValidationError):
        await engine.set_balance("A", "-1", "admin")


async def test_unknown_currency_reads_as_zero(engine):
    assert await engine.get_balance("ZZZ") == Decimal("0")
    assert await engine.list_balances() == []


async def test_overdraft_leaves_no_trace(engine):
    await engine.set_balance("B", "10", "admin")
    with pytest.raises(InsufficientReserveError):
        await engine.debit("B", "10.01", "admin")

    assert await engine.get_balance("B") == Decimal("10.00")
    entries = await engine.list_transactions(currency="B")
    assert len(entries) == 1


async def test_credit_and_debit_reconcile(engine):
    await engine.credit("B", "75", "admin")
    await engine.debit("B", "20.25", "admin", "fee sweep")
    await engine.credit("B", "0.25", "admin")

    result = await engine.reconcile("b")
    assert result.balance == Decimal("55.00")
    assert result.ledger_total == Decimal("55.00")
    assert result.is_balanced


async def test_payout_retires_the_hold(session_factory):
    async with session_factory() as session:
        async with session.begin():
            ledger = LedgerService.with_session(session)
            await ledger.credit("B", Decimal("100"), "admin")
            hold = await ledger.adjust("B", TransactionType.HOLD, Decimal("40"), "X-1")
            payout = await ledger.adjust("B", TransactionType.PAYOUT, Decimal("40"), "X-1", held=Decimal("40"))

    assert hold.balance_delta == Decimal("-40.00")
    assert hold.to_wallet == "order_hold"
    assert payout.balance_delta == Decimal("0.00")
    assert payout.from_wallet == "exchange_reserve"
    assert payout.to_wallet == "customer"
    assert payout.balance_after == Decimal("60.00")


async def test_partial_hold_debits_the_remainder(session_factory):
    async with session_factory() as session:
        async with session.begin():
            ledger = LedgerService.with_session(session)
            await ledger.credit("B", Decimal("100"), "admin")
            payout = await ledger.adjust("B", TransactionType.PAYOUT, Decimal("30"), "X-2", held=Decimal("10"))
            assert payout.balance_delta == Decimal("-20.00")
            assert await ledger.get_balance("B") == Decimal("80.00")


@pytest.mark.parametrize("amount, held", [("0", "0"), ("-5", "0"), ("10", "11")])
async def test_malformed_adjustments_are_rejected(session_factory, amount, held):
    async with session_factory() as session:
        async with session.begin():
            ledger = LedgerService.with_session(session)
            with pytest.raises(ValidationError):
                await ledger.adjust("B", TransactionType.PAYOUT, Decimal(amount), held=Decimal(held))


async def test_concurrent_debits_never_overdraw(engine):
    await engine.set_balance("B", "100", "admin")

    results = await asyncio.gather(
        *(engine.debit("B", "30", f"op-{i}") for i in range(10)),
        return_exceptions=True,
    )

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(succeeded) == 3
    assert all(isinstance(exc, InsufficientReserveError) for exc in failed)
    assert await engine.get_balance("B") == Decimal("10.00")
    assert (await engine.reconcile("B")).is_balanced


async def test_balance_changes_are_broadcast(engine, notifier):
    subscription = notifier.subscribe()
    await engine.credit("A", "12.5", "admin")

    message = subscription.get_nowait()
    assert message["type"] == "balance_update"
    assert message["data"]["currency"] == "A"
    assert message["data"]["balance"] == "12.50"
    assert message["data"]["transaction"]["type"] == "ADJUSTMENT"
