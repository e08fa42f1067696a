"""Ticket issuance and lifecycle domain."""

from .errors import (
    AlreadyCancelledError,
    AlreadyCheckedInError,
    AlreadyRefundedError,
    EventNotFoundError,
    InvalidQRPayloadError,
    InvalidVerificationCodeError,
    SoldOutError,
    TicketAlreadyClosedError,
    TicketNotActiveError,
    TicketNotFoundError,
    TicketNumberExhaustedError,
    TicketNumberHeldError,
    TicketServiceError,
    TicketsDisabledError,
    TicketStorageError,
)
from .holds import HoldManager
from .models import (
    AttendeeEntry,
    Event,
    EventTicketSettings,
    PaymentCard,
    PaymentSummary,
    Ticket,
    TicketHold,
    TicketQRPayload,
    TicketSettingsUpdate,
    TicketValidation,
    UserProfile,
)
from .numbers import TicketNumberAllocator
from .queries import TicketQueryService
from .service import TicketService
from .state import AttendanceStatus, TicketState, TicketStateMachine, TicketStatus

__all__ = [
    "AlreadyCancelledError",
    "AlreadyCheckedInError",
    "AlreadyRefundedError",
    "AttendanceStatus",
    "AttendeeEntry",
    "Event",
    "EventNotFoundError",
    "EventTicketSettings",
    "HoldManager",
    "InvalidQRPayloadError",
    "InvalidVerificationCodeError",
    "PaymentCard",
    "PaymentSummary",
    "SoldOutError",
    "Ticket",
    "TicketAlreadyClosedError",
    "TicketHold",
    "TicketNotActiveError",
    "TicketNotFoundError",
    "TicketNumberAllocator",
    "TicketNumberExhaustedError",
    "TicketNumberHeldError",
    "TicketQRPayload",
    "TicketQueryService",
    "TicketService",
    "TicketServiceError",
    "TicketSettingsUpdate",
    "TicketState",
    "TicketStateMachine",
    "TicketStatus",
    "TicketStorageError",
    "TicketValidation",
    "TicketsDisabledError",
    "UserProfile",
]
