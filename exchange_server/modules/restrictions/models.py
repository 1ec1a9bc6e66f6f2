"""Domain models for customer cancellation restrictions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(slots=True, frozen=True)
class RestrictionPolicy:
    threshold: int = 3
    window: timedelta = timedelta(hours=24)
    cooldown: timedelta = timedelta(hours=24)


@dataclass(slots=True)
class CustomerRestriction:
    customer_identifier: str
    cancellation_count: int
    window_count: int
    window_started_at: Optional[datetime]
    last_cancellation_at: Optional[datetime]
    restricted_until: Optional[datetime]

    def is_active(self, now: datetime) -> bool:
        return self.restricted_until is not None and self.restricted_until > now
