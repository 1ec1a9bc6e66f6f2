"""Exchange rate domain exports"""

from .models import CurrencyLimitRecord, EffectiveLimits, ExchangeRateChange, ExchangeRateRecord, Quote
from .service import RateService, derive_limits, receive_amount_for

__all__ = [
    "CurrencyLimitRecord",
    "EffectiveLimits",
    "ExchangeRateChange",
    "ExchangeRateRecord",
    "Quote",
    "RateService",
    "derive_limits",
    "receive_amount_for",
]
