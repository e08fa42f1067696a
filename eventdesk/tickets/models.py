from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Mapping

from .errors import InvalidQRPayloadError
from .identifiers import is_ticket_number
from .state import TicketState, TicketStatus


@dataclass(slots=True)
class PaymentCard:
    """Card details supplied at checkout. Never persisted."""

    card_type: str | None
    card_number: str = field(repr=False)

    def summarize(self, timestamp: datetime) -> "PaymentSummary":
        return PaymentSummary.from_card(self.card_type, self.card_number, timestamp=timestamp)


@dataclass(slots=True)
class PaymentSummary:
    """Truncated payment record kept on a ticket."""

    card_type: str | None
    last_four: str | None
    timestamp: datetime

    @classmethod
    def from_card(cls, card_type: str | None, card_number: str, *, timestamp: datetime) -> "PaymentSummary":
        digits = "".join(ch for ch in card_number if ch.isdigit())
        return cls(card_type=card_type or None, last_four=digits[-4:] or None, timestamp=timestamp)

    def as_dict(self) -> dict[str, Any]:
        return {
            "card_type": self.card_type,
            "last_four": self.last_four,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaymentSummary":
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(card_type=data.get("card_type"), last_four=data.get("last_four"), timestamp=timestamp)


@dataclass(slots=True)
class Ticket:
    """Aggregate representing one admission to an event."""

    id: str
    ticket_number: str
    verification_code: str | None
    event_id: str
    user_id: str
    price: float
    payment: PaymentSummary | None
    status: TicketStatus
    checked_in: bool
    checked_in_at: datetime | None
    purchased_at: datetime

    @property
    def state(self) -> TicketState:
        return TicketState.from_flags(self.status, self.checked_in)

    def qr_payload(self) -> "TicketQRPayload":
        return TicketQRPayload(
            ticket_number=self.ticket_number,
            event_id=self.event_id,
            verification_code=self.verification_code,
        )


@dataclass(slots=True)
class TicketHold:
    """Provisional claim on a ticket number while a purchase is in flight."""

    id: str
    ticket_number: str
    user_id: str
    created_at: datetime
    expires_at: datetime

    @classmethod
    def starting_at(
        cls, *, hold_id: str, ticket_number: str, user_id: str, created_at: datetime, duration_minutes: int
    ) -> "TicketHold":
        return cls(
            id=hold_id,
            ticket_number=ticket_number,
            user_id=user_id,
            created_at=created_at,
            expires_at=created_at + timedelta(minutes=duration_minutes),
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(slots=True)
class EventTicketSettings:
    """Ticket configuration and inventory counters stored on an event."""

    enabled: bool
    available: int
    sold: int
    price: float
    currency: str
    verification_required: bool


@dataclass(slots=True)
class Event:
    id: str
    title: str
    ticket_settings: EventTicketSettings


@dataclass(slots=True)
class TicketSettingsUpdate:
    """Organizer supplied ticket configuration for an event."""

    enabled: bool
    available: int
    price: float
    currency: str | None = None
    verification_required: bool | None = None

    def resolved(self, default_currency: str = "USD") -> "TicketSettingsUpdate":
        return TicketSettingsUpdate(
            enabled=self.enabled,
            available=self.available,
            price=self.price,
            currency=self.currency or default_currency,
            verification_required=bool(self.verification_required),
        )


@dataclass(slots=True)
class UserProfile:
    id: str
    display_name: str | None
    email: str | None


@dataclass(slots=True)
class AttendeeEntry:
    ticket: Ticket
    profile: UserProfile | None


@dataclass(slots=True)
class TicketValidation:
    """Outcome of a non-mutating admission check."""

    valid: bool
    message: str
    ticket: Ticket | None = None


@dataclass(frozen=True, slots=True)
class TicketQRPayload:
    """Data encoded in a ticket's QR code.

    The JSON form is shared with already printed tickets, so key names,
    key order and ``null`` for a missing code must stay as they are.
    """

    ticket_number: str
    event_id: str
    verification_code: str | None = None

    def to_json(self) -> str:
        return json.dumps(
            {
                "ticketNumber": self.ticket_number,
                "eventId": self.event_id,
                "verificationCode": self.verification_code or None,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: str) -> "TicketQRPayload":
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise InvalidQRPayloadError("Ticket QR payload is not valid JSON") from exc
        if not isinstance(data, dict):
            raise InvalidQRPayloadError("Ticket QR payload must be a JSON object")

        ticket_number = data.get("ticketNumber")
        event_id = data.get("eventId")
        verification_code = data.get("verificationCode")
        if not isinstance(ticket_number, str) or not ticket_number:
            raise InvalidQRPayloadError("Ticket QR payload is missing ticketNumber")
        if not is_ticket_number(ticket_number):
            raise InvalidQRPayloadError("Ticket QR payload has a malformed ticketNumber")
        if not isinstance(event_id, str) or not event_id:
            raise InvalidQRPayloadError("Ticket QR payload is missing eventId")
        if verification_code is not None and not isinstance(verification_code, str):
            raise InvalidQRPayloadError("Ticket QR payload has an invalid verificationCode")
        return cls(ticket_number=ticket_number, event_id=event_id, verification_code=verification_code)
