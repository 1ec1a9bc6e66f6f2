from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from exchange_server.modules.common.exceptions import RestrictedCustomerError, ValidationError
from exchange_server.modules.restrictions import CustomerRestriction, normalize_identifier, parse_identifier


@pytest.mark.parametrize(
    "phone, email, expected",
    [
        ("+252 (63) 123-4567", None, "+252631234567"),
        ("0631234567", "x@example.com", "0631234567"),
        ("", "  Amina@Example.COM ", "amina@example.com"),
        (None, "amina@example.com", "amina@example.com"),
        ("25+2 63", None, "25263"),
    ],
)
def test_identifier_normalization(phone, email, expected):
    assert normalize_identifier(phone, email) == expected


def test_identifier_is_required():
    with pytest.raises(ValidationError):
        normalize_identifier("  ", None)


def test_operator_input_is_parsed_by_shape():
    assert parse_identifier("Amina@Example.com") == "amina@example.com"
    assert parse_identifier("+252 63 123") == "+25263123"


def test_restriction_is_active_until_expiry():
    now = datetime(2026, 1, 1)
    restriction = CustomerRestriction("+1", 3, 0, None, now, now + timedelta(hours=1))
    assert restriction.is_active(now)
    assert not restriction.is_active(now + timedelta(hours=1))


async def _create_and_cancel(engine, make_order, phone):
    order = await engine.create_order(make_order("10", phone=phone))
    await engine.cancel_order(order.order_id, "customer")


async def test_third_cancellation_blocks_new_orders(seeded, make_order, clock):
    phone = "+252 61 000 0001"
    for _ in range(3):
        await _create_and_cancel(seeded, make_order, phone)
        clock.advance(hours=1)

    with pytest.raises(RestrictedCustomerError) as excinfo:
        await seeded.create_order(make_order("10", phone=phone))
    assert "23 hours" in excinfo.value.message
    assert excinfo.value.code == "customer_restricted"

    other = await seeded.create_order(make_order("10", phone="+252 61 000 0002"))
    assert other.status.value == "pending"

    restriction = await seeded.get_restriction(phone)
    assert restriction.cancellation_count == 3
    assert restriction.is_active(clock())


async def test_restriction_lapses_but_count_persists(seeded, make_order, clock):
    phone = "+252 61 000 0003"
    for _ in range(3):
        await _create_and_cancel(seeded, make_order, phone)

    clock.advance(hours=24, seconds=1)
    order = await seeded.create_order(make_order("10", phone=phone))
    assert order.status.value == "pending"

    await seeded.cancel_order(order.order_id, "customer")
    restriction = await seeded.get_restriction(phone)
    assert restriction.cancellation_count == 4
    assert not restriction.is_active(clock())
    assert restriction.window_count == 1


async def test_cancellations_outside_the_window_do_not_add_up(seeded, make_order, clock):
    phone = "+252 61 000 0004"
    for _ in range(3):
        await _create_and_cancel(seeded, make_order, phone)
        clock.advance(hours=13)

    order = await seeded.create_order(make_order("10", phone=phone))
    assert order.status.value == "pending"
    restriction = await seeded.get_restriction(phone)
    assert restriction.restricted_until is None
    assert restriction.cancellation_count == 3


async def test_admin_can_lift_a_restriction(seeded, make_order):
    phone = "+252 61 000 0005"
    for _ in range(3):
        await _create_and_cancel(seeded, make_order, phone)

    cleared = await seeded.clear_restriction(phone, "admin")
    assert cleared.restricted_until is None
    assert cleared.cancellation_count == 3

    order = await seeded.create_order(make_order("10", phone=phone))
    assert order.hold_amount == Decimal("9.30")


async def test_unknown_customer_has_no_record(engine):
    assert await engine.get_restriction("+100") is None
    assert await engine.clear_restriction("nobody@example.com", "admin") is None


async def test_window_trails_the_latest_cancellation(seeded, make_order, clock):
    phone = "+252 61 000 0006"
    for step in (dict(), dict(hours=23, minutes=50), dict(minutes=20), dict(minutes=10)):
        clock.advance(**step)
        await _create_and_cancel(seeded, make_order, phone)

    with pytest.raises(RestrictedCustomerError):
        await seeded.create_order(make_order("10", phone=phone))


async def test_cancellations_are_spent_by_a_restriction(seeded, make_order, clock):
    phone = "+252 61 000 0007"
    for _ in range(3):
        await _create_and_cancel(seeded, make_order, phone)
        clock.advance(minutes=10)

    clock.advance(hours=24)
    await _create_and_cancel(seeded, make_order, phone)
    restriction = await seeded.get_restriction(phone)
    assert restriction.window_count == 1
    assert not restriction.is_active(clock())


async def test_lifting_a_restriction_restarts_the_window(seeded, make_order, clock):
    phone = "+252 61 000 0008"
    for _ in range(2):
        await _create_and_cancel(seeded, make_order, phone)
        clock.advance(minutes=5)
    await seeded.clear_restriction(phone, "admin")
    clock.advance(minutes=5)

    await _create_and_cancel(seeded, make_order, phone)
    restriction = await seeded.get_restriction(phone)
    assert restriction.window_count == 1
    assert restriction.restricted_until is None
