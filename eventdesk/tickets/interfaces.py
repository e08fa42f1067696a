"""Collaborator protocols consumed by the ticket services."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import Event, Ticket, TicketHold, TicketSettingsUpdate, UserProfile


class TicketStore(Protocol):
    async def create_ticket(self, ticket: Ticket) -> Ticket | None:
        """Persist ``ticket`` and claim one unit of its event's inventory.

        Both happen together or not at all. Returns ``None`` when the event
        has no inventory left to claim.
        """
        ...

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        ...

    async def find_tickets(
        self,
        *,
        event_id: str | None = None,
        user_id: str | None = None,
        ticket_number: str | None = None,
        limit: int | None = None,
    ) -> Sequence[Ticket]:
        ...

    async def ticket_number_exists(self, ticket_number: str) -> bool:
        ...

    async def mark_checked_in(self, ticket_id: str, checked_in_at: datetime) -> Ticket | None:
        """Check in an active ticket not yet checked in; ``None`` if it no longer qualifies."""
        ...

    async def cancel_ticket(self, ticket_id: str) -> Ticket | None:
        """Cancel a ticket that is not closed and return its unit to the event inventory."""
        ...


class HoldStore(Protocol):
    async def create_hold(self, hold: TicketHold) -> TicketHold:
        ...

    async def delete_hold(self, hold_id: str) -> bool:
        ...

    async def hold_exists(self, ticket_number: str) -> bool:
        ...

    async def delete_expired(self, now: datetime) -> int:
        ...


class EventStore(Protocol):
    async def get_event(self, event_id: str) -> Event | None:
        ...

    async def update_ticket_settings(self, event_id: str, settings: TicketSettingsUpdate) -> Event | None:
        ...


class ProfileLookup(Protocol):
    async def get_profile(self, user_id: str) -> UserProfile | None:
        ...
