from __future__ import annotations


class TicketServiceError(RuntimeError):
    """Base error for ticket issuance and lifecycle issues."""


class TicketNotFoundError(TicketServiceError):
    """Raised when a ticket could not be located."""


class EventNotFoundError(TicketServiceError):
    """Raised when the event owning a ticket operation does not exist."""


class TicketsDisabledError(TicketServiceError):
    """Raised when purchasing for an event that does not sell tickets."""


class SoldOutError(TicketServiceError):
    """Raised when an event has no tickets left."""


class TicketNumberExhaustedError(TicketServiceError):
    """Raised when no free ticket number was found within the attempt bound."""


class AlreadyCheckedInError(TicketServiceError):
    """Raised when checking in a ticket that was already used for entry."""


class TicketNotActiveError(TicketServiceError):
    """Raised when a ticket is not in the ``active`` status."""

    def __init__(self, status: str) -> None:
        super().__init__(f"Ticket is {status}")
        self.status = status


class InvalidVerificationCodeError(TicketServiceError):
    """Raised when the supplied verification code does not match the ticket."""


class TicketAlreadyClosedError(TicketServiceError):
    """Raised when a ticket already reached a terminal status."""

    def __init__(self, status: str) -> None:
        super().__init__(f"Ticket is already {status}")
        self.status = status


class AlreadyCancelledError(TicketAlreadyClosedError):
    def __init__(self) -> None:
        super().__init__("cancelled")


class AlreadyRefundedError(TicketAlreadyClosedError):
    def __init__(self) -> None:
        super().__init__("refunded")


class TicketStorageError(TicketServiceError):
    """Raised when the persistence layer fails."""


class InvalidQRPayloadError(TicketServiceError, ValueError):
    """Raised when scanned ticket data cannot be decoded."""


class TicketNumberHeldError(TicketServiceError):
    """Raised when another purchase placed a hold on the same number first."""
