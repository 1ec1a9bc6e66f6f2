"""Error taxonomy shared by the exchange engine.

Every error carries a stable ``code`` and a human readable message so callers
can display rejections without ever seeing storage internals.
"""

from __future__ import annotations


class ExchangeError(Exception):
    """Base class for all engine rejections."""

    code = "exchange_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(ExchangeError):
    """Amount outside bounds or a required field missing."""

    code = "validation_error"


class UntradablePairError(ExchangeError):
    """No exchange rate is configured for the requested pair."""

    code = "untradable_pair"


class InsufficientReserveError(ExchangeError):
    """The adjustment would drive a reserve balance negative."""

    code = "insufficient_reserve"


class RestrictedCustomerError(ExchangeError):
    """The customer is serving a cancellation cooldown."""

    code = "customer_restricted"


class InvalidTransitionError(ExchangeError):
    """The order cannot move to the requested status."""

    code = "invalid_transition"


class NotFoundError(ExchangeError):
    code = "not_found"


class ConcurrencyConflictError(ExchangeError):
    """Lost a race on a contended row; the operation may be retried."""

    code = "concurrency_conflict"


class SystemUnavailableError(ExchangeError):
    """Order intake has been switched off by an operator."""

    code = "system_unavailable"


__all__ = [
    "ExchangeError",
    "ValidationError",
    "UntradablePairError",
    "InsufficientReserveError",
    "RestrictedCustomerError",
    "InvalidTransitionError",
    "NotFoundError",
    "ConcurrencyConflictError",
    "SystemUnavailableError",
]
