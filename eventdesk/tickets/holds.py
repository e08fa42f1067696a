from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable

from .errors import TicketNumberExhaustedError, TicketNumberHeldError
from .interfaces import HoldStore
from .models import TicketHold
from .numbers import TicketNumberAllocator

logger = logging.getLogger(__name__)

DEFAULT_HOLD_MINUTES = 15
DEFAULT_CLAIM_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HoldManager:
    """Place and release ticket number holds.

    A hold is visible to :class:`~eventdesk.tickets.numbers.TicketNumberAllocator`
    as soon as it is placed, and the hold store accepts at most one hold per
    number, so two purchases can never settle on the same number.
    """

    def __init__(
        self,
        holds: HoldStore,
        *,
        hold_minutes: int = DEFAULT_HOLD_MINUTES,
        claim_attempts: int = DEFAULT_CLAIM_ATTEMPTS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._holds = holds
        self._hold_minutes = hold_minutes
        self._claim_attempts = max(1, claim_attempts)
        self._clock = clock or _utcnow

    async def place_hold(
        self, ticket_number: str, user_id: str, duration_minutes: int | None = None
    ) -> TicketHold:
        hold = TicketHold.starting_at(
            hold_id=str(uuid.uuid4()),
            ticket_number=ticket_number,
            user_id=user_id,
            created_at=self._clock(),
            duration_minutes=self._hold_minutes if duration_minutes is None else duration_minutes,
        )
        stored = await self._holds.create_hold(hold)
        logger.debug("Placed hold %s until %s", stored.id, stored.expires_at.isoformat())
        return stored

    async def release_hold(self, hold_id: str) -> None:
        """Delete a hold. Never raises."""

        try:
            deleted = await self._holds.delete_hold(hold_id)
        except Exception:
            logger.warning("Failed to release ticket hold %s", hold_id, exc_info=True)
            return
        if not deleted:
            logger.debug("Ticket hold %s was already gone", hold_id)

    @asynccontextmanager
    async def claim(
        self,
        allocator: TicketNumberAllocator,
        user_id: str,
        *,
        duration_minutes: int | None = None,
    ) -> AsyncIterator[TicketHold]:
        """Hold a free ticket number for the duration of the block.

        The hold is released on every exit path; release failures are
        logged and never replace the block's own outcome.
        """

        hold = await self._place_unique(allocator, user_id, duration_minutes)
        try:
            yield hold
        finally:
            await self.release_hold(hold.id)

    async def _place_unique(
        self, allocator: TicketNumberAllocator, user_id: str, duration_minutes: int | None
    ) -> TicketHold:
        for _ in range(self._claim_attempts):
            ticket_number = await allocator.allocate()
            try:
                return await self.place_hold(ticket_number, user_id, duration_minutes)
            except TicketNumberHeldError:
                logger.info("Ticket number was held by a concurrent purchase; drawing another")
        raise TicketNumberExhaustedError(
            f"Ticket numbers kept colliding with concurrent purchases after {self._claim_attempts} attempts"
        )

    async def sweep_expired(self) -> int:
        removed = await self._holds.delete_expired(self._clock())
        if removed:
            logger.info("Removed %d expired ticket holds", removed)
        return removed


async def run_hold_sweeper(manager: HoldManager, *, interval_seconds: float) -> None:
    """Remove expired holds every ``interval_seconds`` until cancelled."""

    while True:
        try:
            await manager.sweep_expired()
        except Exception:
            logger.exception("Expired hold sweep failed")
        await asyncio.sleep(interval_seconds)
