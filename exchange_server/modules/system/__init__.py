"""System settings exports"""

from .models import UNKNOWN_WALLET, PaymentWalletRecord, SystemState
from .service import SystemService

__all__ = [
    "UNKNOWN_WALLET",
    "PaymentWalletRecord",
    "SystemState",
    "SystemService",
]
