"""Storage contract for operator accounts."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import Account, OperatorRole


class AccountRepository(Protocol):
    async def get_by_id(self, account_id: str) -> Account | None:
        ...

    async def get_by_username(self, username: str) -> Account | None:
        ...

    async def add(self, *, username: str, password_hash: str, role: OperatorRole) -> Account:
        ...

    async def has_role(self, role: OperatorRole) -> bool:
        ...

    async def touch_login(self, account_id: str, timestamp: datetime) -> None:
        ...
