from decimal import Decimal

from init_exchange import CURRENCIES, PAYMENT_WALLETS, seed


async def test_seed_is_idempotent(engine):
    counts = await seed(engine)
    assert counts == {"rates": len(CURRENCIES) * (len(CURRENCIES) - 1), "wallets": len(PAYMENT_WALLETS)}

    quote, _ = await engine.quote("zaad", "usdc")
    assert quote.rate == Decimal("1")
    assert await engine.get_system_status() == "on"

    assert await seed(engine) == {"rates": 0, "wallets": 0}


async def test_seed_keeps_operator_rates(engine):
    await engine.set_exchange_rate("evc", "trx", "0.8", "admin")
    await seed(engine)
    quote, _ = await engine.quote("EVC", "TRX")
    assert quote.rate == Decimal("0.8")
