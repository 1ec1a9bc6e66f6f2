"""Operator account rejections."""

from exchange_server.modules.common.exceptions import ExchangeError


class AccountAlreadyExistsError(ExchangeError):
    code = "account_exists"
