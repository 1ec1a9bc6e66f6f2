from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from exchange_server.interfaces.http.deps import get_db_session, get_exchange_engine
from exchange_server.main import create_app
from exchange_server.modules.accounts import AccountCreateInput, AccountService

ORDER = {
    "full_name": "Amina Yusuf",
    "phone_number": "+252 63 123 4567",
    "email": "amina@example.com",
    "wallet_address": "wallet-b-001",
    "send_method": "a",
    "receive_method": "b",
    "send_amount": "100",
}
OWNER = {"phone_number": ORDER["phone_number"]}


@pytest_asyncio.fixture
async def client(seeded, session_factory):
    async def db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async with session_factory() as session:
        async with session.begin():
            await AccountService.with_session(session).create_account(
                AccountCreateInput(username="operator", password="secret-pass")
            )

    app = create_app()
    app.dependency_overrides[get_exchange_engine] = lambda: seeded
    app.dependency_overrides[get_db_session] = db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest_asyncio.fixture
async def admin_headers(client):
    response = await client.post("/api/auth/login", json={"username": "operator", "password": "secret-pass"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def test_quote_endpoint(client):
    response = await client.get("/api/exchange-rate/a/b")
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["rate"]) == Decimal("0.93")
    assert Decimal(body["max_amount"]) == Decimal("10000")

    missing = await client.get("/api/exchange-rate/a/zzz")
    assert missing.status_code == 400
    assert missing.json()["code"] == "untradable_pair"


async def test_customer_order_flow(client):
    created = await client.post("/api/orders", json=ORDER)
    assert created.status_code == 201
    order = created.json()
    assert order["status"] == "pending"
    assert Decimal(order["receive_amount"]) == Decimal("93.00")

    fetched = await client.get(f"/api/orders/{order['order_id']}")
    assert fetched.json()["order_id"] == order["order_id"]

    cancelled = await client.post(f"/api/orders/{order['order_id']}/cancel", json=OWNER)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    again = await client.post(f"/api/orders/{order['order_id']}/cancel", json=OWNER)
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_transition"


async def test_cancel_requires_the_owner(client):
    order = (await client.post("/api/orders", json=ORDER)).json()
    url = f"/api/orders/{order['order_id']}/cancel"

    stranger = await client.post(url, json={"phone_number": "+252 61 999 9999"})
    assert stranger.status_code == 404
    assert stranger.json()["code"] == "not_found"

    anonymous = await client.post(url, json={})
    assert anonymous.status_code == 400

    still_pending = await client.get(f"/api/orders/{order['order_id']}")
    assert still_pending.json()["status"] == "pending"

    owner = await client.post(url, json={"phone_number": "+25263 123-4567"})
    assert owner.status_code == 200


async def test_strangers_cannot_get_a_customer_restricted(client):
    for _ in range(3):
        order = (await client.post("/api/orders", json=ORDER)).json()
        response = await client.post(f"/api/orders/{order['order_id']}/cancel", json={"email": "eve@example.com"})
        assert response.status_code == 404

    assert (await client.post("/api/orders", json=ORDER)).status_code == 201


async def test_rejections_map_to_status_codes(client):
    too_big = await client.post("/api/orders", json={**ORDER, "send_amount": "20000"})
    assert too_big.status_code == 400
    assert too_big.json()["code"] == "validation_error"

    missing = await client.get("/api/orders/DGL-2026-424242")
    assert missing.status_code == 404
    assert missing.json() == {"code": "not_found", "message": "Order DGL-2026-424242 not found"}


async def test_admin_requires_a_token(client):
    response = await client.get("/api/admin/orders")
    assert response.status_code in (401, 403)

    bad = await client.get("/api/admin/orders", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401


async def test_wrong_password_is_refused(client):
    response = await client.post("/api/auth/login", json={"username": "operator", "password": "wrong-pass"})
    assert response.status_code == 401


async def test_admin_profile(client, admin_headers):
    response = await client.get("/api/admin/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["username"] == "operator"
    assert response.json()["role"] == "admin"
    assert response.json()["last_login_at"] is not None


async def test_admin_completes_an_order(client, admin_headers):
    order = (await client.post("/api/orders", json=ORDER)).json()
    url = f"/api/admin/orders/{order['order_id']}"

    for status in ("paid", "processing", "completed"):
        response = await client.patch(f"{url}/status", json={"status": status}, headers=admin_headers)
        assert response.status_code == 200, response.text
        assert response.json()["status"] == status

    history = await client.get(f"{url}/transactions", headers=admin_headers)
    body = history.json()
    assert body["total"] == 2
    payout = body["transactions"][0]
    assert payout["type"] == "PAYOUT"
    assert payout["actor"] == "operator"

    listing = await client.get("/api/admin/orders", params={"status": "completed"}, headers=admin_headers)
    assert [o["order_id"] for o in listing.json()["orders"]] == [order["order_id"]]


async def test_admin_balances(client, admin_headers):
    response = await client.put("/api/admin/balances/b", json={"amount": "500", "reason": "recount"}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["balance"]) == Decimal("500")
    assert body["transaction"]["type"] == "ADJUSTMENT"
    assert body["transaction"]["actor"] == "operator"

    unchanged = await client.put("/api/admin/balances/b", json={"amount": "500"}, headers=admin_headers)
    assert unchanged.json()["transaction"] is None

    debit = await client.post("/api/admin/balances/b/debit", json={"amount": "600"}, headers=admin_headers)
    assert debit.status_code == 409
    assert debit.json()["code"] == "insufficient_reserve"

    credit = await client.post("/api/admin/balances/b/credit", json={"amount": "25"}, headers=admin_headers)
    assert Decimal(credit.json()["balance"]) == Decimal("525")

    reconcile = await client.get("/api/admin/balances/b/reconcile", headers=admin_headers)
    assert reconcile.json()["is_balanced"] is True

    balances = await client.get("/api/admin/balances", headers=admin_headers)
    assert {b["currency"] for b in balances.json()} == {"A", "B"}


async def test_admin_rates_and_limits(client, admin_headers):
    response = await client.post(
        "/api/admin/exchange-rates",
        json={"from_currency": "a", "to_currency": "b", "rate": "0.95", "reason": "update"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert Decimal(response.json()["rate"]) == Decimal("0.95")

    history = await client.get("/api/admin/exchange-rates/history", params={"from_currency": "A"}, headers=admin_headers)
    assert history.json()[0]["changed_by"] == "operator"

    limit = await client.post(
        "/api/admin/currency-limits",
        json={"from_currency": "A", "to_currency": "B", "min_amount": "10", "max_amount": "200"},
        headers=admin_headers,
    )
    assert limit.status_code == 200
    quote = (await client.get("/api/exchange-rate/A/B")).json()
    assert Decimal(quote["max_amount"]) == Decimal("200")

    bad = await client.post(
        "/api/admin/currency-limits",
        json={"from_currency": "A", "to_currency": "B", "min_amount": "300", "max_amount": "200"},
        headers=admin_headers,
    )
    assert bad.status_code == 400


async def test_admin_system_switch(client, admin_headers):
    off = await client.put("/api/admin/system-status", json={"status": "off"}, headers=admin_headers)
    assert off.json() == {"status": "off"}

    blocked = await client.post("/api/orders", json=ORDER)
    assert blocked.status_code == 503
    assert blocked.json()["code"] == "system_unavailable"

    status = await client.get("/api/admin/system-status", headers=admin_headers)
    assert status.json()["status"] == "off"


async def test_admin_restrictions(client, admin_headers):
    for _ in range(3):
        order = (await client.post("/api/orders", json=ORDER)).json()
        await client.post(f"/api/orders/{order['order_id']}/cancel", json={"email": "AMINA@example.com"})

    restricted = await client.post("/api/orders", json=ORDER)
    assert restricted.status_code == 403
    assert restricted.json()["code"] == "customer_restricted"

    record = await client.get("/api/admin/restrictions/+252631234567", headers=admin_headers)
    assert record.json()["is_restricted"] is True
    assert record.json()["cancellation_count"] == 3

    cleared = await client.delete("/api/admin/restrictions/+252631234567", headers=admin_headers)
    assert cleared.status_code == 200
    assert (await client.post("/api/orders", json=ORDER)).status_code == 201

    unknown = await client.get("/api/admin/restrictions/nobody@example.com", headers=admin_headers)
    assert unknown.status_code == 404


async def test_admin_payment_wallets(client, admin_headers):
    response = await client.put("/api/admin/payment-wallets/a", json={"address": "*880*1*amount#"}, headers=admin_headers)
    assert response.json()["method"] == "A"

    wallets = await client.get("/api/admin/payment-wallets", headers=admin_headers)
    assert wallets.json() == [response.json()]

    order = (await client.post("/api/orders", json=ORDER)).json()
    assert order["payment_wallet"] == "*880*1*amount#"
