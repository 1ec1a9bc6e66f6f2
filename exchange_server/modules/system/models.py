"""Domain models for operator-controlled system settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

SystemState = Literal["on", "off"]

UNKNOWN_WALLET = "Unknown"


@dataclass(slots=True)
class PaymentWalletRecord:
    method: str
    address: str
    updated_at: Optional[datetime]
