"""Operator accounts"""

from .exceptions import AccountAlreadyExistsError
from .models import Account, AccountCreateInput, OperatorRole
from .service import AccountService

__all__ = [
    "Account",
    "AccountCreateInput",
    "AccountAlreadyExistsError",
    "AccountService",
    "OperatorRole",
]
