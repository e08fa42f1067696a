from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Sequence

from sqlalchemy import case, delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from eventdesk.db.models import EventTable, TicketHoldTable, TicketTable, UserProfileTable

from .errors import TicketNumberHeldError, TicketStorageError
from .models import (
    Event,
    EventTicketSettings,
    PaymentSummary,
    Ticket,
    TicketHold,
    TicketSettingsUpdate,
    UserProfile,
)
from .state import TicketStatus

_CLOSED_STATUSES = (TicketStatus.CANCELLED.value, TicketStatus.REFUNDED.value)


class _SQLRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            raise TicketStorageError(f"Ticket storage failure: {exc}") from exc


class TicketRepository(_SQLRepository):
    """Persistence for the `tickets` table and the event counters it drives."""

    async def create_ticket(self, ticket: Ticket) -> Ticket | None:
        async with self._session() as session:
            async with session.begin():
                claimed = await session.execute(
                    update(EventTable)
                    .where(
                        EventTable.id == ticket.event_id,
                        EventTable.tickets_enabled.is_(True),
                        EventTable.tickets_available > 0,
                    )
                    .values(
                        tickets_available=EventTable.tickets_available - 1,
                        tickets_sold=EventTable.tickets_sold + 1,
                        updated_at=ticket.purchased_at,
                    )
                    .execution_options(synchronize_session=False)
                )
                if claimed.rowcount != 1:
                    return None
                session.add(self._ticket_to_table(ticket))
        return ticket

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        async with self._session() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None:
                return None
            return self._table_to_ticket(row)

    async def find_tickets(
        self,
        *,
        event_id: str | None = None,
        user_id: str | None = None,
        ticket_number: str | None = None,
        limit: int | None = None,
    ) -> Sequence[Ticket]:
        statement = select(TicketTable)
        if event_id is not None:
            statement = statement.where(TicketTable.event_id == event_id)
        if user_id is not None:
            statement = statement.where(TicketTable.user_id == user_id)
        if ticket_number is not None:
            statement = statement.where(TicketTable.ticket_number == ticket_number)
        statement = statement.order_by(TicketTable.purchased_at.asc())
        if limit is not None:
            statement = statement.limit(limit)

        async with self._session() as session:
            result = await session.execute(statement)
            return [self._table_to_ticket(row) for row in result.scalars().all()]

    async def ticket_number_exists(self, ticket_number: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                select(TicketTable.id).where(TicketTable.ticket_number == ticket_number).limit(1)
            )
            return result.first() is not None

    async def mark_checked_in(self, ticket_id: str, checked_in_at: datetime) -> Ticket | None:
        async with self._session() as session:
            async with session.begin():
                result = await session.execute(
                    update(TicketTable)
                    .where(
                        TicketTable.id == ticket_id,
                        TicketTable.checked_in.is_(False),
                        TicketTable.status == TicketStatus.ACTIVE.value,
                    )
                    .values(checked_in=True, checked_in_at=checked_in_at)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    return None
                row = await session.get(TicketTable, ticket_id)
                return None if row is None else self._table_to_ticket(row)

    async def cancel_ticket(self, ticket_id: str) -> Ticket | None:
        async with self._session() as session:
            async with session.begin():
                result = await session.execute(
                    update(TicketTable)
                    .where(TicketTable.id == ticket_id, TicketTable.status.not_in(_CLOSED_STATUSES))
                    .values(status=TicketStatus.CANCELLED.value)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    return None
                row = await session.get(TicketTable, ticket_id)
                if row is None:
                    return None
                await session.execute(
                    update(EventTable)
                    .where(EventTable.id == row.event_id)
                    .values(
                        tickets_available=EventTable.tickets_available + 1,
                        tickets_sold=case(
                            (EventTable.tickets_sold > 0, EventTable.tickets_sold - 1),
                            else_=0,
                        ),
                        updated_at=datetime.now(timezone.utc),
                    )
                    .execution_options(synchronize_session=False)
                )
                return self._table_to_ticket(row)

    @staticmethod
    def _ticket_to_table(ticket: Ticket) -> TicketTable:
        return TicketTable(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            verification_code=ticket.verification_code,
            event_id=ticket.event_id,
            user_id=ticket.user_id,
            price=ticket.price,
            payment=ticket.payment.as_dict() if ticket.payment else None,
            status=ticket.status.value,
            checked_in=ticket.checked_in,
            checked_in_at=ticket.checked_in_at,
            purchased_at=ticket.purchased_at,
        )

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=row.id,
            ticket_number=row.ticket_number,
            verification_code=row.verification_code,
            event_id=row.event_id,
            user_id=row.user_id,
            price=float(row.price),
            payment=PaymentSummary.from_dict(row.payment) if row.payment else None,
            status=TicketStatus(row.status),
            checked_in=bool(row.checked_in),
            checked_in_at=_ensure_optional_datetime(row.checked_in_at),
            purchased_at=_ensure_datetime(row.purchased_at),
        )


class TicketHoldRepository(_SQLRepository):
    """Persistence for the `ticket_holds` table."""

    async def create_hold(self, hold: TicketHold) -> TicketHold:
        try:
            async with self._session() as session:
                async with session.begin():
                    session.add(
                        TicketHoldTable(
                            id=hold.id,
                            ticket_number=hold.ticket_number,
                            user_id=hold.user_id,
                            created_at=hold.created_at,
                            expires_at=hold.expires_at,
                        )
                    )
        except TicketStorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise TicketNumberHeldError(f"Ticket number {hold.ticket_number} is already held") from exc.__cause__
            raise
        return hold

    async def delete_hold(self, hold_id: str) -> bool:
        async with self._session() as session:
            async with session.begin():
                result = await session.execute(
                    delete(TicketHoldTable)
                    .where(TicketHoldTable.id == hold_id)
                    .execution_options(synchronize_session=False)
                )
                return result.rowcount == 1

    async def hold_exists(self, ticket_number: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                select(TicketHoldTable.id).where(TicketHoldTable.ticket_number == ticket_number).limit(1)
            )
            return result.first() is not None

    async def delete_expired(self, now: datetime) -> int:
        async with self._session() as session:
            async with session.begin():
                result = await session.execute(
                    delete(TicketHoldTable)
                    .where(TicketHoldTable.expires_at <= now)
                    .execution_options(synchronize_session=False)
                )
                return int(result.rowcount or 0)


class EventRepository(_SQLRepository):
    """Access to the ticket fields of `events` records."""

    async def get_event(self, event_id: str) -> Event | None:
        async with self._session() as session:
            row = await session.get(EventTable, event_id)
            if row is None:
                return None
            return self._table_to_event(row)

    async def update_ticket_settings(self, event_id: str, settings: TicketSettingsUpdate) -> Event | None:
        async with self._session() as session:
            async with session.begin():
                row = await session.get(EventTable, event_id)
                if row is None:
                    return None
                row.tickets_enabled = settings.enabled
                row.tickets_available = settings.available
                row.ticket_price = settings.price
                if settings.currency is not None:
                    row.ticket_currency = settings.currency
                if settings.verification_required is not None:
                    row.ticket_verification_required = settings.verification_required
                row.updated_at = datetime.now(timezone.utc)
                await session.flush()
                return self._table_to_event(row)

    @staticmethod
    def _table_to_event(row: EventTable) -> Event:
        return Event(
            id=row.id,
            title=row.title,
            ticket_settings=EventTicketSettings(
                enabled=bool(row.tickets_enabled),
                available=int(row.tickets_available),
                sold=int(row.tickets_sold),
                price=float(row.ticket_price),
                currency=row.ticket_currency,
                verification_required=bool(row.ticket_verification_required),
            ),
        )


class UserProfileRepository(_SQLRepository):
    """Read-only lookup of ticket holder display data."""

    async def get_profile(self, user_id: str) -> UserProfile | None:
        async with self._session() as session:
            row = await session.get(UserProfileTable, user_id)
            if row is None:
                return None
            return UserProfile(id=row.id, display_name=row.display_name, email=row.email)


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")


def _ensure_optional_datetime(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return _ensure_datetime(value)
