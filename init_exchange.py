"""
Seed a fresh exchange database: admin account, 1:1 rates between every
supported method, operator deposit wallets and an open order intake.
"""
import asyncio
from decimal import Decimal

from exchange_server.core.config import get_settings
from exchange_server.infrastructure.database.session import dispose_engine, get_session_factory, init_db
from exchange_server.modules.notifications import ChangeNotifier
from exchange_server.services import ExchangeEngine
from init_admin import ensure_default_admin

SEED_ACTOR = "system:seed"

CURRENCIES = ["zaad", "sahal", "evc", "edahab", "premier", "moneygo", "trx", "trc20", "peb20", "usdc"]

PAYMENT_WALLETS = {
    "zaad": "*880*637834431*amount#",
    "sahal": "*883*905865292*amount#",
    "evc": "*799*34996012*amount#",
    "edahab": "0626451011",
    "premier": "0616451011",
    "moneygo": "U2778451",
    "trx": "THspUcX2atLi7e4cQdMLqNBrn13RrNaRkv",
    "trc20": "THspUcX2atLi7e4cQdMLqNBrn13RrNaRkv",
    "peb20": "0x5f3c72277de38d91e12f6f594ac8353c21d73c83",
}


async def seed(engine: ExchangeEngine) -> dict[str, int]:
    """Insert whatever is missing; existing rates and wallets are left untouched."""
    existing_rates = {(rate.from_currency, rate.to_currency) for rate in await engine.list_rates()}
    rates = 0
    for source in CURRENCIES:
        for target in CURRENCIES:
            if source == target or (source.upper(), target.upper()) in existing_rates:
                continue
            await engine.set_exchange_rate(source, target, Decimal("1"), SEED_ACTOR)
            rates += 1

    existing_wallets = {wallet.method for wallet in await engine.list_payment_wallets()}
    wallets = 0
    for method, address in PAYMENT_WALLETS.items():
        if method.upper() not in existing_wallets:
            await engine.set_payment_wallet(method, address, SEED_ACTOR)
            wallets += 1

    if await engine.get_system_status() != "on":
        await engine.set_system_status("on", SEED_ACTOR)
    return {"rates": rates, "wallets": wallets}


async def main() -> None:
    settings = get_settings()
    await init_db()
    admin_created = await ensure_default_admin()
    engine = ExchangeEngine(get_session_factory(), ChangeNotifier(), settings)
    counts = await seed(engine)
    await dispose_engine()

    print("Admin account:", "created" if admin_created else "already present")
    print(f"Exchange rates seeded: {counts['rates']}")
    print(f"Payment wallets seeded: {counts['wallets']}")


if __name__ == "__main__":
    asyncio.run(main())
