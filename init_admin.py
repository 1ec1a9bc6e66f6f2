"""
Create the default operator account used for the first login.
"""
import asyncio

from exchange_server.infrastructure.database.session import dispose_engine, get_session_factory, init_db
from exchange_server.modules.accounts import AccountCreateInput, AccountService

DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin123"


async def ensure_default_admin(username: str = DEFAULT_USERNAME, password: str = DEFAULT_PASSWORD) -> bool:
    """Create the admin account unless one already exists; returns whether it was created."""
    async with get_session_factory()() as db:
        async with db.begin():
            service = AccountService.with_session(db)
            if await service.has_admin():
                return False
            await service.create_account(AccountCreateInput(username=username, password=password))
    return True


async def main() -> None:
    await init_db()
    created = await ensure_default_admin()
    await dispose_engine()

    if not created:
        print("An admin account already exists, nothing to do")
        return
    print("=" * 50)
    print("Default admin account created")
    print("=" * 50)
    print(f"Username: {DEFAULT_USERNAME}")
    print(f"Password: {DEFAULT_PASSWORD}")
    print("=" * 50)
    print("Change the password after the first login!")
    print("=" * 50)


if __name__ == "__main__":
    asyncio.run(main())
