"""Time helpers shared by the domain modules."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
