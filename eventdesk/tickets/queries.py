from __future__ import annotations

from typing import Sequence

from .interfaces import ProfileLookup, TicketStore
from .models import AttendeeEntry, Ticket, UserProfile


class TicketQueryService:
    """Read paths over issued tickets for listings and reporting."""

    def __init__(self, tickets: TicketStore, *, profiles: ProfileLookup | None = None) -> None:
        self._tickets = tickets
        self._profiles = profiles

    async def by_event(self, event_id: str) -> Sequence[Ticket]:
        return await self._tickets.find_tickets(event_id=event_id)

    async def by_user(self, user_id: str) -> Sequence[Ticket]:
        return await self._tickets.find_tickets(user_id=user_id)

    async def by_number(self, ticket_number: str) -> Ticket | None:
        matches = await self._tickets.find_tickets(ticket_number=ticket_number, limit=1)
        return matches[0] if matches else None

    async def attendees(self, event_id: str) -> list[AttendeeEntry]:
        """Pair each of the event's tickets with its holder's profile."""

        tickets = await self.by_event(event_id)
        profiles: dict[str, UserProfile | None] = {}
        if self._profiles is not None:
            for user_id in dict.fromkeys(ticket.user_id for ticket in tickets):
                profiles[user_id] = await self._profiles.get_profile(user_id)
        return [AttendeeEntry(ticket=ticket, profile=profiles.get(ticket.user_id)) for ticket in tickets]
