from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from eventdesk.db.models import EventTable, UserProfileTable
from eventdesk.tickets.errors import TicketNumberHeldError, TicketStorageError
from eventdesk.tickets.models import PaymentSummary, Ticket, TicketHold, TicketSettingsUpdate
from eventdesk.tickets.repository import (
    EventRepository,
    TicketHoldRepository,
    TicketRepository,
    UserProfileRepository,
)
from eventdesk.tickets.state import TicketStatus

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        session.add(
            EventTable(
                id="event-1",
                title="Launch party",
                tickets_enabled=True,
                tickets_available=1,
                tickets_sold=0,
                ticket_price=20.0,
                ticket_currency="USD",
                ticket_verification_required=False,
            )
        )
        session.add(UserProfileTable(id="alice", display_name="Alice", email="alice@example.com"))
        await session.commit()
    return factory


def _ticket(ticket_id: str, number: str, *, user_id: str = "alice", purchased_at: datetime = NOW) -> Ticket:
    return Ticket(
        id=ticket_id,
        ticket_number=number,
        verification_code="AB3456",
        event_id="event-1",
        user_id=user_id,
        price=20.0,
        payment=PaymentSummary(card_type="visa", last_four="1234", timestamp=purchased_at),
        status=TicketStatus.ACTIVE,
        checked_in=False,
        checked_in_at=None,
        purchased_at=purchased_at,
    )


async def _counters(session_factory: async_sessionmaker) -> tuple[int, int]:
    async with session_factory() as session:
        row = await session.get(EventTable, "event-1")
        return row.tickets_available, row.tickets_sold


@pytest.mark.asyncio
async def test_ensure_schema_creates_tables(engine: AsyncEngine):
    factory = async_sessionmaker(engine, expire_on_commit=False)
    repo = TicketRepository(factory, engine=engine)

    await repo.ensure_schema()

    async with engine.begin() as conn:
        tables = await conn.run_sync(lambda sync_conn: set(sa_inspect(sync_conn).get_table_names()))

    assert {"events", "tickets", "ticket_holds", "user_profiles"} <= tables


@pytest.mark.asyncio
async def test_create_ticket_claims_inventory(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)

    created = await repo.create_ticket(_ticket("ticket-1", "1111111111111111"))
    refused = await repo.create_ticket(_ticket("ticket-2", "2222222222222222", user_id="bob"))

    assert created is not None
    assert refused is None
    assert await _counters(session_factory) == (0, 1)
    assert await repo.get_ticket("ticket-2") is None

    stored = await repo.get_ticket("ticket-1")
    assert stored is not None
    assert stored.status is TicketStatus.ACTIVE
    assert stored.payment == PaymentSummary(card_type="visa", last_four="1234", timestamp=NOW)
    assert stored.purchased_at == NOW
    assert await repo.ticket_number_exists("1111111111111111")
    assert not await repo.ticket_number_exists("2222222222222222")


@pytest.mark.asyncio
async def test_find_tickets_filters_and_orders(session_factory: async_sessionmaker):
    events = EventRepository(session_factory)
    await events.update_ticket_settings("event-1", TicketSettingsUpdate(enabled=True, available=5, price=20.0))
    repo = TicketRepository(session_factory)
    await repo.create_ticket(_ticket("late", "2222222222222222", purchased_at=NOW + timedelta(minutes=5)))
    await repo.create_ticket(_ticket("early", "1111111111111111"))
    await repo.create_ticket(_ticket("bob", "3333333333333333", user_id="bob"))

    by_user = await repo.find_tickets(user_id="alice")
    by_number = await repo.find_tickets(ticket_number="3333333333333333", limit=1)

    assert [ticket.id for ticket in by_user] == ["early", "late"]
    assert [ticket.id for ticket in by_number] == ["bob"]
    assert len(await repo.find_tickets(event_id="event-1")) == 3


@pytest.mark.asyncio
async def test_mark_checked_in_only_once(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)
    await repo.create_ticket(_ticket("ticket-1", "1111111111111111"))

    first = await repo.mark_checked_in("ticket-1", NOW)
    second = await repo.mark_checked_in("ticket-1", NOW)

    assert first is not None
    assert first.checked_in is True
    assert first.checked_in_at == NOW
    assert second is None


@pytest.mark.asyncio
async def test_cancel_ticket_returns_inventory(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)
    await repo.create_ticket(_ticket("ticket-1", "1111111111111111"))

    cancelled = await repo.cancel_ticket("ticket-1")
    again = await repo.cancel_ticket("ticket-1")

    assert cancelled is not None
    assert cancelled.status is TicketStatus.CANCELLED
    assert again is None
    assert await _counters(session_factory) == (1, 0)
    assert await repo.mark_checked_in("ticket-1", NOW) is None


@pytest.mark.asyncio
async def test_hold_numbers_are_unique(session_factory: async_sessionmaker):
    repo = TicketHoldRepository(session_factory)
    hold = TicketHold.starting_at(
        hold_id="hold-1", ticket_number="1111111111111111", user_id="alice", created_at=NOW, duration_minutes=15
    )
    await repo.create_hold(hold)

    with pytest.raises(TicketNumberHeldError):
        await repo.create_hold(
            TicketHold.starting_at(
                hold_id="hold-2",
                ticket_number="1111111111111111",
                user_id="bob",
                created_at=NOW,
                duration_minutes=15,
            )
        )

    assert await repo.hold_exists("1111111111111111")
    assert await repo.delete_hold("hold-1") is True
    assert await repo.delete_hold("hold-1") is False
    assert not await repo.hold_exists("1111111111111111")


@pytest.mark.asyncio
async def test_delete_expired_holds(session_factory: async_sessionmaker):
    repo = TicketHoldRepository(session_factory)
    await repo.create_hold(
        TicketHold.starting_at(
            hold_id="old", ticket_number="1111111111111111", user_id="alice", created_at=NOW, duration_minutes=15
        )
    )
    await repo.create_hold(
        TicketHold.starting_at(
            hold_id="new",
            ticket_number="2222222222222222",
            user_id="alice",
            created_at=NOW + timedelta(minutes=10),
            duration_minutes=15,
        )
    )

    removed = await repo.delete_expired(NOW + timedelta(minutes=20))

    assert removed == 1
    assert not await repo.hold_exists("1111111111111111")
    assert await repo.hold_exists("2222222222222222")


@pytest.mark.asyncio
async def test_event_settings_and_profiles(session_factory: async_sessionmaker):
    events = EventRepository(session_factory)

    updated = await events.update_ticket_settings(
        "event-1",
        TicketSettingsUpdate(enabled=False, available=40, price=15.0, currency="EUR", verification_required=True),
    )

    assert updated is not None
    assert updated.ticket_settings.available == 40
    assert updated.ticket_settings.currency == "EUR"
    assert updated.ticket_settings.verification_required is True
    assert await events.update_ticket_settings(
        "missing", TicketSettingsUpdate(enabled=True, available=1, price=1.0)
    ) is None

    profiles = UserProfileRepository(session_factory)
    profile = await profiles.get_profile("alice")
    assert profile is not None and profile.display_name == "Alice"
    assert await profiles.get_profile("nobody") is None


@pytest.mark.asyncio
async def test_connection_errors_become_storage_errors():
    class UnreachableSession:
        async def __aenter__(self):
            raise ConnectionRefusedError("connection refused")

        async def __aexit__(self, exc_type, exc, tb):
            return False

    repo = TicketRepository(lambda: UnreachableSession())

    with pytest.raises(TicketStorageError) as exc:
        await repo.get_ticket("ticket-1")

    assert isinstance(exc.value.__cause__, ConnectionRefusedError)
