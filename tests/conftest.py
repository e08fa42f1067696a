from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from eventdesk.tickets.errors import TicketNumberHeldError, TicketStorageError
from eventdesk.tickets.holds import HoldManager
from eventdesk.tickets.models import Event, EventTicketSettings, Ticket, TicketHold, UserProfile
from eventdesk.tickets.numbers import TicketNumberAllocator
from eventdesk.tickets.service import TicketService
from eventdesk.tickets.state import TicketStatus


class FrozenClock:
    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryEventStore:
    def __init__(self):
        self.events: dict[str, Event] = {}

    def add(
        self,
        event_id: str = "event-1",
        *,
        enabled: bool = True,
        available: int = 10,
        price: float = 25.0,
        verification_required: bool = False,
    ) -> Event:
        event = Event(
            id=event_id,
            title=f"Event {event_id}",
            ticket_settings=EventTicketSettings(
                enabled=enabled,
                available=available,
                sold=0,
                price=price,
                currency="USD",
                verification_required=verification_required,
            ),
        )
        self.events[event_id] = event
        return event

    async def get_event(self, event_id):
        event = self.events.get(event_id)
        if event is None:
            return None
        return replace(event, ticket_settings=replace(event.ticket_settings))

    async def update_ticket_settings(self, event_id, settings):
        event = self.events.get(event_id)
        if event is None:
            return None
        current = event.ticket_settings
        current.enabled = settings.enabled
        current.available = settings.available
        current.price = settings.price
        if settings.currency is not None:
            current.currency = settings.currency
        if settings.verification_required is not None:
            current.verification_required = settings.verification_required
        return await self.get_event(event_id)


class InMemoryTicketStore:
    """Ticket store sharing event counters with :class:`InMemoryEventStore`."""

    def __init__(self, events: InMemoryEventStore):
        self.events = events
        self.tickets: dict[str, Ticket] = {}
        self.fail_lookups = False

    async def create_ticket(self, ticket):
        # Yield so concurrent purchases interleave between their checks and this write.
        await asyncio.sleep(0)
        event = self.events.events.get(ticket.event_id)
        if event is None:
            return None
        settings = event.ticket_settings
        if not settings.enabled or settings.available <= 0:
            return None
        settings.available -= 1
        settings.sold += 1
        self.tickets[ticket.id] = replace(ticket)
        return replace(ticket)

    async def get_ticket(self, ticket_id):
        ticket = self.tickets.get(ticket_id)
        return replace(ticket) if ticket is not None else None

    async def find_tickets(self, *, event_id=None, user_id=None, ticket_number=None, limit=None):
        matches = [
            replace(ticket)
            for ticket in sorted(self.tickets.values(), key=lambda item: item.purchased_at)
            if (event_id is None or ticket.event_id == event_id)
            and (user_id is None or ticket.user_id == user_id)
            and (ticket_number is None or ticket.ticket_number == ticket_number)
        ]
        return matches[:limit] if limit is not None else matches

    async def ticket_number_exists(self, ticket_number):
        if self.fail_lookups:
            raise TicketStorageError("lookup failed")
        return any(ticket.ticket_number == ticket_number for ticket in self.tickets.values())

    async def mark_checked_in(self, ticket_id, checked_in_at):
        await asyncio.sleep(0)
        ticket = self.tickets.get(ticket_id)
        if ticket is None or ticket.checked_in or ticket.status is not TicketStatus.ACTIVE:
            return None
        ticket.checked_in = True
        ticket.checked_in_at = checked_in_at
        return replace(ticket)

    async def cancel_ticket(self, ticket_id):
        ticket = self.tickets.get(ticket_id)
        if ticket is None or ticket.status in (TicketStatus.CANCELLED, TicketStatus.REFUNDED):
            return None
        ticket.status = TicketStatus.CANCELLED
        settings = self.events.events[ticket.event_id].ticket_settings
        settings.available += 1
        settings.sold = max(0, settings.sold - 1)
        return replace(ticket)


class InMemoryHoldStore:
    def __init__(self):
        self.holds: dict[str, TicketHold] = {}
        self.fail_deletes = False
        self.fail_lookups = False
        self.hide_holds = False

    async def create_hold(self, hold):
        if any(existing.ticket_number == hold.ticket_number for existing in self.holds.values()):
            raise TicketNumberHeldError(f"Ticket number {hold.ticket_number} is already held")
        self.holds[hold.id] = hold
        return hold

    async def delete_hold(self, hold_id):
        if self.fail_deletes:
            raise TicketStorageError("delete failed")
        return self.holds.pop(hold_id, None) is not None

    async def hold_exists(self, ticket_number):
        if self.fail_lookups:
            raise TicketStorageError("lookup failed")
        if self.hide_holds:
            return False
        return any(hold.ticket_number == ticket_number for hold in self.holds.values())

    async def delete_expired(self, now):
        expired = [hold_id for hold_id, hold in self.holds.items() if hold.is_expired(now)]
        for hold_id in expired:
            del self.holds[hold_id]
        return len(expired)


class InMemoryProfiles:
    def __init__(self, *profiles: UserProfile):
        self.profiles = {profile.id: profile for profile in profiles}
        self.lookups: list[str] = []

    async def get_profile(self, user_id):
        self.lookups.append(user_id)
        return self.profiles.get(user_id)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def event_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def ticket_store(event_store: InMemoryEventStore) -> InMemoryTicketStore:
    return InMemoryTicketStore(event_store)


@pytest.fixture
def hold_store() -> InMemoryHoldStore:
    return InMemoryHoldStore()


@pytest.fixture
def hold_manager(hold_store: InMemoryHoldStore, clock: FrozenClock) -> HoldManager:
    return HoldManager(hold_store, hold_minutes=15, clock=clock)


@pytest.fixture
def allocator(ticket_store: InMemoryTicketStore, hold_store: InMemoryHoldStore) -> TicketNumberAllocator:
    return TicketNumberAllocator(ticket_store, hold_store)


@pytest.fixture
def ticket_service(
    ticket_store: InMemoryTicketStore,
    event_store: InMemoryEventStore,
    allocator: TicketNumberAllocator,
    hold_manager: HoldManager,
    clock: FrozenClock,
) -> TicketService:
    return TicketService(ticket_store, event_store, allocator=allocator, holds=hold_manager, clock=clock)


@pytest.fixture
def profiles() -> InMemoryProfiles:
    return InMemoryProfiles(UserProfile(id="alice", display_name="Alice", email="alice@example.com"))
