import asyncio

import pytest

from exchange_server.core.config import ExchangeSettings
from exchange_server.modules.notifications import ChangeNotifier, EventType
from exchange_server.modules.orders import OrderProcessor, OrderStatus
from exchange_server.services import AUTO_COMPLETE_ACTOR, ExchangeEngine


def test_messages_arrive_in_order():
    notifier = ChangeNotifier(queue_size=10)
    subscription = notifier.subscribe("dash")
    for i in range(3):
        notifier.broadcast(EventType.ORDER_UPDATE, {"seq": i})

    received = [subscription.get_nowait() for _ in range(3)]
    assert [m["data"]["seq"] for m in received] == [0, 1, 2]
    assert {m["type"] for m in received} == {"order_update"}
    assert all("timestamp" in m for m in received)


def test_full_queue_drops_only_for_that_subscriber():
    notifier = ChangeNotifier(queue_size=2)
    slow = notifier.subscribe("slow")
    fast = notifier.subscribe("fast")

    for i in range(3):
        notifier.broadcast("new_message", {"seq": i})
        fast.get_nowait()

    assert slow.dropped == 1
    assert fast.dropped == 0
    assert [slow.get_nowait()["data"]["seq"] for _ in range(2)] == [0, 1]
    with pytest.raises(asyncio.QueueEmpty):
        slow.get_nowait()


def test_unknown_event_type_is_rejected():
    notifier = ChangeNotifier()
    with pytest.raises(ValueError):
        notifier.broadcast("order_deleted", {})


def test_closed_subscription_stops_receiving():
    notifier = ChangeNotifier()
    subscription = notifier.subscribe()
    subscription.close()
    notifier.broadcast(EventType.BALANCE_UPDATE, {})
    assert subscription.queue.empty()
    assert notifier.subscriber_count() == 0


async def test_subscription_iterates_asynchronously():
    notifier = ChangeNotifier()
    subscription = notifier.subscribe()
    notifier.broadcast(EventType.STATUS_CHANGE, {"order_id": "X"})

    async def first():
        async for message in subscription:
            return message

    message = await asyncio.wait_for(first(), timeout=1)
    assert message["data"] == {"order_id": "X"}


async def test_processor_fires_after_delay():
    completed = []

    async def complete(order_id):
        completed.append(order_id)

    processor = OrderProcessor(0.01, complete)
    processor.start_timer("X-1")
    assert processor.is_processing("X-1")
    await asyncio.sleep(0.1)
    assert completed == ["X-1"]
    assert processor.active_count() == 0


async def test_cleared_timer_never_fires():
    completed = []

    async def complete(order_id):
        completed.append(order_id)

    processor = OrderProcessor(0.05, complete)
    processor.start_timer("X-2")
    processor.clear_timer("X-2")
    await asyncio.sleep(0.1)
    assert completed == []


async def test_disabled_processor_starts_nothing():
    async def complete(order_id):
        raise AssertionError("should not run")

    processor = OrderProcessor(0, complete)
    processor.start_timer("X-3")
    assert processor.active_count() == 0


async def test_engine_auto_completes_processing_orders(session_factory, notifier, settings, clock, make_order):
    settings = settings.model_copy(
        update={"exchange": ExchangeSettings(auto_complete_minutes=0.001, max_retries=25, retry_backoff_seconds=0.01)}
    )
    engine = ExchangeEngine(session_factory, notifier, settings, clock)
    await engine.set_exchange_rate("A", "B", "0.93", "admin")
    await engine.set_balance("B", "1000", "admin")

    order = await engine.create_order(make_order("100"))
    await engine.advance_order(order.order_id, OrderStatus.PROCESSING, "admin")
    assert engine.processor.is_processing(order.order_id)

    for _ in range(50):
        await asyncio.sleep(0.05)
        if (await engine.get_order(order.order_id)).status is OrderStatus.COMPLETED:
            break
    completed = await engine.get_order(order.order_id)
    assert completed.status is OrderStatus.COMPLETED
    entries = await engine.list_order_transactions(order.order_id)
    assert entries[0].actor == AUTO_COMPLETE_ACTOR
    await engine.shutdown()


async def test_cancel_clears_the_auto_complete_timer(session_factory, notifier, settings, clock, make_order):
    settings = settings.model_copy(update={"exchange": ExchangeSettings(auto_complete_minutes=10)})
    engine = ExchangeEngine(session_factory, notifier, settings, clock)
    await engine.set_exchange_rate("A", "B", "0.93", "admin")
    await engine.set_balance("B", "1000", "admin")

    order = await engine.create_order(make_order("100"))
    await engine.advance_order(order.order_id, OrderStatus.PROCESSING, "admin")
    assert engine.processor.active_count() == 1
    await engine.cancel_order(order.order_id, "admin")
    assert engine.processor.active_count() == 0
    await engine.shutdown()


async def test_event_time_follows_the_engine_clock(seeded, make_order, notifier, clock):
    subscription = notifier.subscribe()
    await seeded.create_order(make_order("10"))

    message = subscription.get_nowait()
    assert message["type"] == "new_order"
    assert message["timestamp"] == clock().isoformat()
    assert message["data"]["created_at"] == message["timestamp"]
