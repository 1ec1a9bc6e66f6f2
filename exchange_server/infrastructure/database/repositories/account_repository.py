"""SQLAlchemy storage for operator accounts"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.db.models import Account as AccountModel
from exchange_server.modules.accounts.exceptions import AccountAlreadyExistsError
from exchange_server.modules.accounts.models import Account, OperatorRole


class SqlAccountRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, account_id: str) -> Account | None:
        model = await self.session.get(AccountModel, account_id)
        return self._to_domain(model) if model else None

    async def get_by_username(self, username: str) -> Account | None:
        result = await self.session.execute(select(AccountModel).where(AccountModel.username == username))
        model = result.scalars().first()
        return self._to_domain(model) if model else None

    async def add(self, *, username: str, password_hash: str, role: OperatorRole) -> Account:
        model = AccountModel(username=username, password_hash=password_hash, role=role.value, is_active=True)
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise AccountAlreadyExistsError(f"Operator {username} already exists") from exc
        return self._to_domain(model)

    async def has_role(self, role: OperatorRole) -> bool:
        result = await self.session.execute(select(exists().where(AccountModel.role == role.value)))
        return bool(result.scalar())

    async def touch_login(self, account_id: str, timestamp: datetime) -> None:
        await self.session.execute(
            update(AccountModel).where(AccountModel.id == account_id).values(last_login_at=timestamp)
        )

    @staticmethod
    def _to_domain(model: AccountModel) -> Account:
        return Account(
            id=str(model.id),
            username=model.username,
            role=OperatorRole(model.role),
            is_active=bool(model.is_active),
            password_hash=model.password_hash,
            created_at=model.created_at,
            last_login_at=model.last_login_at,
        )
