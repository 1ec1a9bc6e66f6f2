"""Shared helpers for the domain modules."""

from .exceptions import (
    ConcurrencyConflictError,
    ExchangeError,
    InsufficientReserveError,
    InvalidTransitionError,
    NotFoundError,
    RestrictedCustomerError,
    SystemUnavailableError,
    UntradablePairError,
    ValidationError,
)

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
