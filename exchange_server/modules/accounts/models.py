"""Operators: the people whose names end up on ledger entries and order history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class OperatorRole(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


@dataclass(slots=True)
class Account:
    id: str
    username: str
    role: OperatorRole
    is_active: bool
    password_hash: str = field(repr=False)
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @property
    def actor(self) -> str:
        """Name recorded as the actor of every change this operator makes."""
        return self.username

    def is_admin(self) -> bool:
        return self.is_active and self.role in (OperatorRole.ADMIN, OperatorRole.SUPER_ADMIN)


@dataclass(slots=True)
class AccountCreateInput:
    username: str
    password: str
    role: OperatorRole = OperatorRole.ADMIN
