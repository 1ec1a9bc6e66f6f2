import asyncio
import re
from decimal import Decimal

import pytest

from exchange_server.modules.common.exceptions import (
    ConcurrencyConflictError,
    InsufficientReserveError,
    InvalidTransitionError,
    NotFoundError,
    SystemUnavailableError,
    UntradablePairError,
    ValidationError,
)
from exchange_server.modules.ledger import TransactionType
from exchange_server.modules.orders import OrderStatus


async def test_create_then_cancel_restores_reserve(seeded, make_order):
    order = await seeded.create_order(make_order("100"))

    assert re.fullmatch(r"DGL-\d{4}-\d{6}", order.order_id)
    assert order.status is OrderStatus.PENDING
    assert order.receive_amount == Decimal("93.00")
    assert order.hold_amount == Decimal("93.00")
    assert order.exchange_rate == Decimal("0.93")
    assert order.customer_identifier == "+252631234567"
    assert await seeded.get_balance("B") == Decimal("9907.00")
    assert await seeded.get_balance("A") == Decimal("10000.00")

    cancelled = await seeded.cancel_order(order.order_id, "admin")
    assert cancelled.status is OrderStatus.CANCELLED
    assert cancelled.hold_amount == Decimal("0.00")
    assert cancelled.cancelled_at is not None
    assert await seeded.get_balance("B") == Decimal("10000.00")

    entries = await seeded.list_order_transactions(order.order_id)
    assert [entry.type for entry in entries] == [TransactionType.RELEASE, TransactionType.HOLD]
    release, hold = entries
    assert (hold.from_wallet, hold.to_wallet) == ("exchange_reserve", "order_hold")
    assert (release.from_wallet, release.to_wallet) == ("order_hold", "exchange_reserve")
    assert (await seeded.reconcile("B")).is_balanced


async def test_order_ids_are_sequential(seeded, make_order):
    first = await seeded.create_order(make_order("10"))
    second = await seeded.create_order(make_order("10"))
    assert int(second.order_id[-6:]) == int(first.order_id[-6:]) + 1


async def test_full_lifecycle_pays_out_once(seeded, make_order):
    order = await seeded.create_order(make_order("100"))
    paid = await seeded.advance_order(order.order_id, "paid", "admin")
    assert paid.status is OrderStatus.PAID
    processing = await seeded.advance_order(order.order_id, OrderStatus.PROCESSING, "admin")
    assert processing.hold_amount == Decimal("93.00")

    completed = await seeded.advance_order(order.order_id, OrderStatus.COMPLETED, "admin")
    assert completed.status is OrderStatus.COMPLETED
    assert completed.hold_amount == Decimal("0.00")
    assert completed.completed_at is not None
    assert await seeded.get_balance("B") == Decimal("9907.00")

    with pytest.raises(InvalidTransitionError):
        await seeded.advance_order(order.order_id, OrderStatus.COMPLETED, "admin")

    payouts = [e for e in await seeded.list_order_transactions(order.order_id) if e.type is TransactionType.PAYOUT]
    assert len(payouts) == 1
    assert payouts[0].amount == Decimal("93.00")
    assert payouts[0].balance_delta == Decimal("0.00")
    assert (await seeded.reconcile("B")).is_balanced


async def test_concurrent_completion_applies_once(seeded, make_order):
    order = await seeded.create_order(make_order("100"))
    await seeded.advance_order(order.order_id, OrderStatus.PROCESSING, "admin")

    results = await asyncio.gather(
        *(seeded.advance_order(order.order_id, OrderStatus.COMPLETED, f"op-{i}") for i in range(4)),
        return_exceptions=True,
    )

    done = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, Exception)]
    assert len(done) == 1
    assert all(isinstance(r, (InvalidTransitionError, ConcurrencyConflictError)) for r in rejected)
    entries = await seeded.list_order_transactions(order.order_id)
    assert sum(1 for e in entries if e.type is TransactionType.PAYOUT) == 1
    assert await seeded.get_balance("B") == Decimal("9907.00")


async def test_rate_is_frozen_into_the_order(seeded, make_order):
    order = await seeded.create_order(make_order("100"))
    await seeded.set_exchange_rate("A", "B", "0.5", "admin")

    await seeded.advance_order(order.order_id, OrderStatus.PROCESSING, "admin")
    completed = await seeded.advance_order(order.order_id, OrderStatus.COMPLETED, "admin")
    assert completed.exchange_rate == Decimal("0.93")
    assert completed.receive_amount == Decimal("93.00")

    new_order = await seeded.create_order(make_order("100"))
    assert new_order.receive_amount == Decimal("50.00")


@pytest.mark.parametrize(
    "current, target",
    [
        ("pending", "completed"),
        ("pending", "pending"),
        ("paid", "pending"),
        ("processing", "paid"),
    ],
)
async def test_disallowed_transitions(seeded, make_order, current, target):
    order = await seeded.create_order(make_order("10"))
    if current == "paid":
        await seeded.advance_order(order.order_id, "paid", "admin")
    elif current == "processing":
        await seeded.advance_order(order.order_id, "processing", "admin")

    with pytest.raises(InvalidTransitionError):
        await seeded.advance_order(order.order_id, target, "admin")
    assert (await seeded.get_order(order.order_id)).status.value == current


async def test_cancelled_order_cannot_be_cancelled_again(seeded, make_order):
    order = await seeded.create_order(make_order("10"))
    await seeded.advance_order(order.order_id, OrderStatus.CANCELLED, "admin")
    with pytest.raises(InvalidTransitionError):
        await seeded.cancel_order(order.order_id, "admin")
    assert await seeded.get_balance("B") == Decimal("10000.00")


async def test_customer_cancel_only_from_pending(seeded, make_order):
    order = await seeded.create_order(make_order("10"))
    await seeded.advance_order(order.order_id, OrderStatus.PAID, "admin")
    with pytest.raises(InvalidTransitionError):
        await seeded.cancel_order(order.order_id, "customer", only_from=OrderStatus.PENDING)
    assert (await seeded.get_order(order.order_id)).status is OrderStatus.PAID


async def test_unknown_order_and_status(seeded):
    with pytest.raises(NotFoundError):
        await seeded.get_order("DGL-2026-999999")
    with pytest.raises(NotFoundError):
        await seeded.cancel_order("DGL-2026-999999", "admin")
    with pytest.raises(ValidationError):
        await seeded.advance_order("DGL-2026-999999", "shipped", "admin")


async def test_amount_bounds(seeded, make_order):
    with pytest.raises(ValidationError):
        await seeded.create_order(make_order("10753"))
    with pytest.raises(ValidationError):
        await seeded.create_order(make_order("4.99"))

    order = await seeded.create_order(make_order("10752"))
    assert order.receive_amount == Decimal("9999.36")
    assert await seeded.get_balance("B") == Decimal("0.64")


@pytest.mark.parametrize(
    "overrides",
    [
        {"full_name": "  "},
        {"wallet_address": ""},
        {"phone_number": "", "email": None},
        {"receive_method": "a"},
    ],
)
async def test_invalid_order_input(seeded, make_order, overrides):
    with pytest.raises(ValidationError):
        await seeded.create_order(make_order("10", **overrides))
    assert await seeded.get_balance("B") == Decimal("10000.00")


async def test_untradable_pair_is_rejected(seeded, make_order):
    with pytest.raises(UntradablePairError):
        await seeded.create_order(make_order("10", receive_method="C"))


async def test_reserve_bounds_follow_holds(seeded, make_order):
    await seeded.set_balance("B", "50", "admin")
    # reserve-derived max is floor(50 / 0.93) = 53.76
    with pytest.raises(ValidationError):
        await seeded.create_order(make_order("60"))
    order = await seeded.create_order(make_order("53.76"))
    assert order.receive_amount == Decimal("50.00")
    assert await seeded.get_balance("B") == Decimal("0.00")
    with pytest.raises((ValidationError, InsufficientReserveError)):
        await seeded.create_order(make_order("5"))


async def test_system_off_blocks_new_orders(seeded, make_order, notifier):
    subscription = notifier.subscribe()
    assert await seeded.set_system_status("off", "admin") == "off"
    assert subscription.get_nowait()["type"] == "system_status_update"

    with pytest.raises(SystemUnavailableError):
        await seeded.create_order(make_order("10"))

    await seeded.set_system_status("on", "admin")
    order = await seeded.create_order(make_order("10"))
    assert order.status is OrderStatus.PENDING


async def test_payment_wallet_follows_send_method(seeded, make_order):
    first = await seeded.create_order(make_order("10"))
    assert first.payment_wallet == "Unknown"

    await seeded.set_payment_wallet("a", "*880*1234*amount#", "admin")
    second = await seeded.create_order(make_order("10"))
    assert second.payment_wallet == "*880*1234*amount#"
    assert [w.method for w in await seeded.list_payment_wallets()] == ["A"]


async def test_events_follow_the_order(seeded, make_order, notifier):
    subscription = notifier.subscribe()
    order = await seeded.create_order(make_order("100"))
    await seeded.cancel_order(order.order_id, "admin")

    types = []
    while not subscription.queue.empty():
        types.append(subscription.get_nowait()["type"])
    assert types == ["new_order", "balance_update", "status_change", "order_update", "balance_update"]


async def test_list_orders_filters_by_status(seeded, make_order):
    first = await seeded.create_order(make_order("10"))
    second = await seeded.create_order(make_order("10"))
    await seeded.cancel_order(first.order_id, "admin")

    pending = await seeded.list_orders("pending")
    assert [o.order_id for o in pending] == [second.order_id]
    everything = await seeded.list_orders()
    assert [o.order_id for o in everything] == [second.order_id, first.order_id]


async def test_cancel_checks_the_owner(seeded, make_order):
    order = await seeded.create_order(make_order("10"))

    with pytest.raises(NotFoundError):
        await seeded.cancel_order(order.order_id, "customer", owner="+252619999999")
    assert (await seeded.get_order(order.order_id)).status is OrderStatus.PENDING
    assert await seeded.get_restriction("+252619999999") is None

    by_email = await seeded.cancel_order(order.order_id, "customer", owner="amina@example.com")
    assert by_email.status is OrderStatus.CANCELLED


async def test_concurrent_orders_never_overdraw_the_reserve(seeded, make_order):
    await seeded.set_balance("B", "100", "admin")

    results = await asyncio.gather(
        *(seeded.create_order(make_order("32.26", phone=f"+252 61 100 00{i:02d}")) for i in range(10)),
        return_exceptions=True,
    )

    placed = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, Exception)]
    assert len(placed) == 3
    assert all(order.hold_amount == Decimal("30.00") for order in placed)
    assert all(isinstance(exc, (InsufficientReserveError, ValidationError)) for exc in rejected)
    assert await seeded.get_balance("B") == Decimal("10.00")
    assert (await seeded.reconcile("B")).is_balanced
