from __future__ import annotations

import logging
from typing import Callable

from .errors import TicketNumberExhaustedError
from .identifiers import generate_ticket_number
from .interfaces import HoldStore, TicketStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10


class TicketNumberAllocator:
    """Find ticket numbers not used by any issued ticket or pending hold."""

    def __init__(
        self,
        tickets: TicketStore,
        holds: HoldStore,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        generator: Callable[[], str] = generate_ticket_number,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._tickets = tickets
        self._holds = holds
        self._max_attempts = max_attempts
        self._generator = generator

    async def is_taken(self, ticket_number: str) -> bool:
        """Return whether ``ticket_number`` is in use.

        Storage errors count as "taken": a lost candidate is cheaper than a
        duplicate ticket number.
        """

        try:
            if await self._tickets.ticket_number_exists(ticket_number):
                return True
            return await self._holds.hold_exists(ticket_number)
        except Exception:
            logger.warning("Could not check ticket number availability; treating as taken", exc_info=True)
            return True

    async def allocate(self) -> str:
        for attempt in range(1, self._max_attempts + 1):
            candidate = self._generator()
            if not await self.is_taken(candidate):
                if attempt > 1:
                    logger.debug("Allocated ticket number after %d attempts", attempt)
                return candidate

        logger.error("No free ticket number found after %d attempts", self._max_attempts)
        raise TicketNumberExhaustedError(
            f"Failed to generate a unique ticket number after {self._max_attempts} attempts"
        )
