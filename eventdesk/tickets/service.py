from __future__ import annotations

import logging
import secrets
import uuid
from datetime import datetime, timezone
from typing import Callable, NoReturn

from opentelemetry import trace

from .errors import (
    AlreadyCheckedInError,
    EventNotFoundError,
    InvalidVerificationCodeError,
    SoldOutError,
    TicketNotFoundError,
    TicketStorageError,
    TicketsDisabledError,
)
from .holds import HoldManager
from .identifiers import generate_verification_code
from .interfaces import EventStore, TicketStore
from .models import Event, PaymentCard, Ticket, TicketQRPayload, TicketSettingsUpdate, TicketValidation
from .numbers import TicketNumberAllocator
from .state import TicketStateMachine, TicketStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _codes_match(expected: str, supplied: str | None) -> bool:
    if supplied is None:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


class TicketService:
    """Orchestrates ticket issuance, check-in and cancellation."""

    def __init__(
        self,
        tickets: TicketStore,
        events: EventStore,
        *,
        allocator: TicketNumberAllocator,
        holds: HoldManager,
        state_machine: TicketStateMachine | None = None,
        default_currency: str = "USD",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._tickets = tickets
        self._events = events
        self._allocator = allocator
        self._holds = holds
        self._state_machine = state_machine or TicketStateMachine()
        self._default_currency = default_currency
        self._clock = clock or _utcnow

    async def purchase(
        self,
        *,
        event_id: str,
        user_id: str,
        use_verification_code: bool = False,
        price: float | None = None,
        payment: PaymentCard | None = None,
    ) -> Ticket:
        with tracer.start_as_current_span("tickets.purchase") as span:
            span.set_attribute("event.id", event_id)

            event = await self._events.get_event(event_id)
            if event is None:
                raise EventNotFoundError(f"Event {event_id} not found")
            settings = event.ticket_settings
            if not settings.enabled:
                raise TicketsDisabledError("Tickets are not enabled for this event")
            if settings.available <= 0:
                raise SoldOutError("No tickets available for this event")

            async with self._holds.claim(self._allocator, user_id) as hold:
                now = self._clock()
                initial = self._state_machine.initial_state()
                needs_code = use_verification_code or settings.verification_required
                ticket = Ticket(
                    id=str(uuid.uuid4()),
                    ticket_number=hold.ticket_number,
                    verification_code=generate_verification_code() if needs_code else None,
                    event_id=event_id,
                    user_id=user_id,
                    price=settings.price if price is None else price,
                    payment=payment.summarize(now) if payment is not None else None,
                    status=initial.status,
                    checked_in=initial.is_checked_in,
                    checked_in_at=None,
                    purchased_at=now,
                )
                stored = await self._tickets.create_ticket(ticket)
                if stored is None:
                    await self._raise_unclaimable(event_id)

            span.set_attribute("ticket.id", stored.id)
            logger.info("Issued ticket %s for event %s", stored.id, event_id)
            return stored

    async def _raise_unclaimable(self, event_id: str) -> NoReturn:
        # The event changed between the pre-check and the inventory claim.
        current = await self._events.get_event(event_id)
        if current is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        if not current.ticket_settings.enabled:
            raise TicketsDisabledError("Tickets are not enabled for this event")
        raise SoldOutError("No tickets available for this event")

    async def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._tickets.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    async def check_in(self, ticket_id: str, verification_code: str | None = None) -> Ticket:
        with tracer.start_as_current_span("tickets.check_in") as span:
            span.set_attribute("ticket.id", ticket_id)

            ticket = await self.get_ticket(ticket_id)
            self._state_machine.assert_can_check_in(ticket.state)
            if ticket.verification_code and not _codes_match(ticket.verification_code, verification_code):
                raise InvalidVerificationCodeError("Invalid verification code")

            updated = await self._tickets.mark_checked_in(ticket_id, self._clock())
            if updated is None:
                # Another request changed the ticket between the read and the write.
                current = await self.get_ticket(ticket_id)
                self._state_machine.assert_can_check_in(current.state)
                raise AlreadyCheckedInError("Ticket has already been checked in")

            logger.info("Checked in ticket %s for event %s", ticket_id, updated.event_id)
            return updated

    async def check_in_scanned(self, payload_text: str, *, event_id: str | None = None) -> Ticket:
        """Check in the ticket encoded in a scanned QR payload."""

        payload = TicketQRPayload.from_json(payload_text)
        if event_id is not None and payload.event_id != event_id:
            raise TicketNotFoundError("Ticket does not belong to this event")
        matches = await self._tickets.find_tickets(ticket_number=payload.ticket_number, limit=1)
        if not matches or matches[0].event_id != payload.event_id:
            raise TicketNotFoundError("Ticket not found")
        return await self.check_in(matches[0].id, payload.verification_code)

    async def validate_ticket(self, ticket_number: str, verification_code: str | None = None) -> TicketValidation:
        matches = await self._tickets.find_tickets(ticket_number=ticket_number, limit=1)
        if not matches:
            return TicketValidation(valid=False, message="Ticket not found")
        ticket = matches[0]
        state = ticket.state
        if state.status is not TicketStatus.ACTIVE:
            return TicketValidation(valid=False, message=f"Ticket is {state.status.value}", ticket=ticket)
        if state.is_checked_in:
            return TicketValidation(valid=False, message="Ticket has already been used", ticket=ticket)
        if ticket.verification_code and not _codes_match(ticket.verification_code, verification_code):
            return TicketValidation(valid=False, message="Invalid verification code", ticket=ticket)
        return TicketValidation(valid=True, message="Ticket is valid", ticket=ticket)

    async def cancel(self, ticket_id: str) -> Ticket:
        with tracer.start_as_current_span("tickets.cancel") as span:
            span.set_attribute("ticket.id", ticket_id)

            ticket = await self.get_ticket(ticket_id)
            self._state_machine.assert_can_cancel(ticket.state)

            updated = await self._tickets.cancel_ticket(ticket_id)
            if updated is None:
                current = await self.get_ticket(ticket_id)
                self._state_machine.assert_can_cancel(current.state)
                raise TicketStorageError(f"Ticket {ticket_id} could not be cancelled")

            logger.info("Cancelled ticket %s for event %s", ticket_id, updated.event_id)
            return updated

    async def update_event_ticket_settings(self, event_id: str, settings: TicketSettingsUpdate) -> Event:
        event = await self._events.update_ticket_settings(event_id, settings.resolved(self._default_currency))
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        logger.info(
            "Updated ticket settings for event %s (enabled=%s, available=%d)",
            event_id,
            event.ticket_settings.enabled,
            event.ticket_settings.available,
        )
        return event
