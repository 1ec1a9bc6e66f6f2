"""Operator login and provisioning."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import Clock, utcnow
from exchange_server.core.crypto import hash_password, verify_password

from .exceptions import AccountAlreadyExistsError
from .models import Account, AccountCreateInput, OperatorRole
from .repository import AccountRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AccountService:
    repository: AccountRepository
    clock: Clock = utcnow

    @classmethod
    def with_session(cls, session: AsyncSession, clock: Clock = utcnow) -> "AccountService":
        from exchange_server.infrastructure.database.repositories.account_repository import SqlAccountRepository

        return cls(SqlAccountRepository(session), clock)

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self.repository.get_by_id(account_id)

    async def authenticate(self, username: str, password: str) -> Account | None:
        """Return the operator when the credentials match an active account and stamp the login."""
        account = await self.repository.get_by_username(username)
        if account is None or not account.is_active or not verify_password(password, account.password_hash):
            logger.warning("Rejected login for %s", username)
            return None
        account.last_login_at = self.clock()
        await self.repository.touch_login(account.id, account.last_login_at)
        return account

    async def create_account(self, payload: AccountCreateInput) -> Account:
        if await self.repository.get_by_username(payload.username) is not None:
            raise AccountAlreadyExistsError(f"Operator {payload.username} already exists")
        account = await self.repository.add(
            username=payload.username,
            password_hash=hash_password(payload.password),
            role=payload.role,
        )
        logger.info("Operator %s created with role %s", account.username, account.role.value)
        return account

    async def has_admin(self) -> bool:
        for role in OperatorRole:
            if await self.repository.has_role(role):
                return True
        return False
