"""Customer cancellation tracking and temporary order bans."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from exchange_server.core.clock import Clock, utcnow
from exchange_server.db.models import CustomerRestriction as CustomerRestrictionModel
from exchange_server.infrastructure.database.repositories.restriction_repository import SqlRestrictionRepository
from exchange_server.modules.common.exceptions import ConcurrencyConflictError, ValidationError

from .models import CustomerRestriction, RestrictionPolicy
from .repository import RestrictionRepository

logger = logging.getLogger(__name__)

_PHONE_JUNK = re.compile(r"[^\d+]")


def normalize_identifier(phone_number: Optional[str] = None, email: Optional[str] = None) -> str:
    """Return the key restrictions are tracked under.

    Phone numbers keep only digits and a leading ``+``; e-mail addresses are
    trimmed and lower-cased. The phone number wins when both are present.
    """
    if phone_number:
        digits = _PHONE_JUNK.sub("", phone_number.strip())
        digits = digits[:1] + digits[1:].replace("+", "")
        if digits.strip("+"):
            return digits
    if email and email.strip():
        return email.strip().lower()
    raise ValidationError("A phone number or e-mail address is required")


def parse_identifier(value: str) -> str:
    """Normalize an identifier typed by an operator, either a phone number or an e-mail."""
    if "@" in value:
        return normalize_identifier(email=value)
    return normalize_identifier(phone_number=value)


@dataclass(slots=True)
class RestrictionService:
    repository: RestrictionRepository
    policy: RestrictionPolicy = field(default_factory=RestrictionPolicy)
    clock: Clock = utcnow

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        policy: RestrictionPolicy | None = None,
        clock: Clock = utcnow,
    ) -> "RestrictionService":
        return cls(SqlRestrictionRepository(session), policy or RestrictionPolicy(), clock)

    async def get(self, identifier: str) -> CustomerRestriction | None:
        model = await self.repository.get(identifier)
        return self._to_domain(model) if model else None

    async def is_restricted(self, identifier: str) -> bool:
        restriction = await self.get(identifier)
        return restriction is not None and restriction.is_active(self.clock())

    async def record_cancellation(self, identifier: str) -> CustomerRestriction:
        now = self.clock()
        model = await self.repository.get(identifier)
        if model is None:
            model = await self.repository.create(identifier)
        current = self._to_domain(model)

        # trailing window (now - window, now], never reaching back past the last restart
        window_floor = now - self.policy.window
        if current.window_started_at is not None and current.window_started_at > window_floor:
            window_floor = current.window_started_at
        window_started_at = current.window_started_at
        window_count = await self.repository.count_cancellations_after(identifier, window_floor)
        restricted_until = current.restricted_until
        if window_count >= self.policy.threshold:
            restricted_until = now + self.policy.cooldown
            # cancellations up to now are spent; the lifetime count keeps growing
            window_count = 0
            window_started_at = now
            logger.warning(
                "Customer %s restricted until %s after %s cancellations",
                identifier,
                restricted_until,
                current.cancellation_count + 1,
            )

        updated = await self.repository.update_if_unchanged(
            identifier,
            expected_count=current.cancellation_count,
            cancellation_count=current.cancellation_count + 1,
            window_count=window_count,
            window_started_at=window_started_at,
            last_cancellation_at=now,
            restricted_until=restricted_until,
        )
        if updated is None:
            raise ConcurrencyConflictError(f"Cancellation record for {identifier} changed concurrently")
        return self._to_domain(updated)

    async def clear(self, identifier: str) -> CustomerRestriction | None:
        model = await self.repository.clear(identifier, self.clock())
        if model is not None:
            logger.info("Restriction for %s cleared", identifier)
        return self._to_domain(model) if model else None

    def hours_remaining(self, restriction: CustomerRestriction) -> int:
        if restriction.restricted_until is None:
            return 0
        seconds = (restriction.restricted_until - self.clock()).total_seconds()
        return max(0, -(-int(seconds) // 3600))

    @staticmethod
    def _to_domain(model: CustomerRestrictionModel) -> CustomerRestriction:
        return CustomerRestriction(
            customer_identifier=model.customer_identifier,
            cancellation_count=model.cancellation_count or 0,
            window_count=model.window_count or 0,
            window_started_at=model.window_started_at,
            last_cancellation_at=model.last_cancellation_at,
            restricted_until=model.restricted_until,
        )
