"""Request and response bodies shared by the ticket routes."""

from __future__ import annotations

from datetime import datetime

from fastapi import HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from eventdesk.tickets.errors import (
    AlreadyCheckedInError,
    EventNotFoundError,
    InvalidQRPayloadError,
    InvalidVerificationCodeError,
    SoldOutError,
    TicketAlreadyClosedError,
    TicketNotActiveError,
    TicketNotFoundError,
    TicketNumberExhaustedError,
    TicketServiceError,
    TicketsDisabledError,
    TicketStorageError,
)
from eventdesk.tickets.models import AttendeeEntry, Event, PaymentCard, Ticket, TicketValidation
from eventdesk.tickets.state import TicketStatus

_ERROR_STATUS: tuple[tuple[type[TicketServiceError], int], ...] = (
    (TicketNotFoundError, status.HTTP_404_NOT_FOUND),
    (EventNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidVerificationCodeError, status.HTTP_403_FORBIDDEN),
    (InvalidQRPayloadError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (TicketsDisabledError, status.HTTP_409_CONFLICT),
    (SoldOutError, status.HTTP_409_CONFLICT),
    (AlreadyCheckedInError, status.HTTP_409_CONFLICT),
    (TicketNotActiveError, status.HTTP_409_CONFLICT),
    (TicketAlreadyClosedError, status.HTTP_409_CONFLICT),
    (TicketNumberExhaustedError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (TicketStorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(exc: TicketServiceError) -> HTTPException:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


class PaymentCardRequest(BaseModel):
    card_type: str | None = Field(default=None, max_length=50)
    card_number: SecretStr

    def to_card(self) -> PaymentCard:
        return PaymentCard(card_type=self.card_type, card_number=self.card_number.get_secret_value())


class TicketPurchaseRequest(BaseModel):
    use_verification_code: bool = False
    payment: PaymentCardRequest | None = None


class CheckInRequest(BaseModel):
    verification_code: str | None = Field(default=None, max_length=32)


class ScanRequest(BaseModel):
    payload: str = Field(..., min_length=2, max_length=1024)
    event_id: str | None = None


class ValidateRequest(BaseModel):
    ticket_number: str = Field(..., min_length=1, max_length=32)
    verification_code: str | None = Field(default=None, max_length=32)


class TicketSettingsRequest(BaseModel):
    enabled: bool
    available: int
    price: float
    currency: str | None = Field(default=None, max_length=3)
    verification_required: bool | None = None


class PaymentSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    card_type: str | None
    last_four: str | None
    timestamp: datetime


class TicketResponse(BaseModel):
    id: str
    ticket_number: str
    event_id: str
    user_id: str
    price: float
    payment: PaymentSummaryResponse | None
    status: TicketStatus
    checked_in: bool
    checked_in_at: datetime | None
    purchased_at: datetime
    has_verification_code: bool

    @classmethod
    def from_entity(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            event_id=ticket.event_id,
            user_id=ticket.user_id,
            price=ticket.price,
            payment=PaymentSummaryResponse.model_validate(ticket.payment) if ticket.payment else None,
            status=ticket.status,
            checked_in=ticket.checked_in,
            checked_in_at=ticket.checked_in_at,
            purchased_at=ticket.purchased_at,
            has_verification_code=bool(ticket.verification_code),
        )


class TicketDetailResponse(TicketResponse):
    """Ticket as shown to its holder, including the verification code."""

    verification_code: str | None

    @classmethod
    def from_entity(cls, ticket: Ticket, *, reveal_code: bool = True) -> "TicketDetailResponse":
        base = TicketResponse.from_entity(ticket)
        return cls(
            **base.model_dump(),
            verification_code=ticket.verification_code if reveal_code else None,
        )


class QRPayloadResponse(BaseModel):
    ticket_id: str
    payload: str


class TicketValidationResponse(BaseModel):
    valid: bool
    message: str
    ticket: TicketResponse | None = None

    @classmethod
    def from_result(cls, result: TicketValidation) -> "TicketValidationResponse":
        return cls(
            valid=result.valid,
            message=result.message,
            ticket=TicketResponse.from_entity(result.ticket) if result.ticket else None,
        )


class EventTicketSettingsResponse(BaseModel):
    event_id: str
    title: str
    enabled: bool
    available: int
    sold: int
    price: float
    currency: str
    verification_required: bool

    @classmethod
    def from_event(cls, event: Event) -> "EventTicketSettingsResponse":
        settings = event.ticket_settings
        return cls(
            event_id=event.id,
            title=event.title,
            enabled=settings.enabled,
            available=settings.available,
            sold=settings.sold,
            price=settings.price,
            currency=settings.currency,
            verification_required=settings.verification_required,
        )


class AttendeeResponse(BaseModel):
    ticket: TicketResponse
    display_name: str | None = None
    email: str | None = None

    @classmethod
    def from_entry(cls, entry: AttendeeEntry) -> "AttendeeResponse":
        profile = entry.profile
        return cls(
            ticket=TicketResponse.from_entity(entry.ticket),
            display_name=profile.display_name if profile else None,
            email=profile.email if profile else None,
        )


class HoldSweepResponse(BaseModel):
    removed: int
