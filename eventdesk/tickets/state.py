from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import AlreadyCancelledError, AlreadyCheckedInError, AlreadyRefundedError, TicketNotActiveError


class TicketStatus(str, Enum):
    """Lifecycle axis of a ticket."""

    ACTIVE = "active"
    USED = "used"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class AttendanceStatus(str, Enum):
    """Attendance axis of a ticket, independent of its lifecycle status."""

    NOT_CHECKED_IN = "not_checked_in"
    CHECKED_IN = "checked_in"


@dataclass(frozen=True, slots=True)
class TicketState:
    """Combined lifecycle and attendance state.

    Both axes move independently: a ticket cancelled after entry is
    ``(cancelled, checked_in)``, which is a valid state.
    """

    status: TicketStatus
    attendance: AttendanceStatus

    @classmethod
    def from_flags(cls, status: TicketStatus, checked_in: bool) -> "TicketState":
        attendance = AttendanceStatus.CHECKED_IN if checked_in else AttendanceStatus.NOT_CHECKED_IN
        return cls(status=status, attendance=attendance)

    @property
    def is_checked_in(self) -> bool:
        return self.attendance is AttendanceStatus.CHECKED_IN

    @property
    def is_closed(self) -> bool:
        return self.status in (TicketStatus.CANCELLED, TicketStatus.REFUNDED)

    @property
    def can_check_in(self) -> bool:
        return self.status is TicketStatus.ACTIVE and not self.is_checked_in

    @property
    def can_cancel(self) -> bool:
        return not self.is_closed


class TicketStateMachine:
    """Validate ticket lifecycle transitions."""

    _TRANSITIONS: dict[TicketStatus, set[TicketStatus]] = {
        TicketStatus.ACTIVE: {TicketStatus.USED, TicketStatus.CANCELLED, TicketStatus.REFUNDED},
        TicketStatus.USED: {TicketStatus.CANCELLED, TicketStatus.REFUNDED},
        TicketStatus.CANCELLED: set(),
        TicketStatus.REFUNDED: set(),
    }

    @classmethod
    def initial_state(cls) -> TicketState:
        return TicketState(status=TicketStatus.ACTIVE, attendance=AttendanceStatus.NOT_CHECKED_IN)

    @classmethod
    def can_transition(cls, current: TicketStatus, new: TicketStatus) -> bool:
        if current == new:
            return True
        return new in cls._TRANSITIONS.get(current, set())

    @classmethod
    def assert_transition(cls, current: TicketStatus, new: TicketStatus) -> None:
        if not cls.can_transition(current, new):
            raise ValueError(f"Invalid ticket status transition: {current.value} -> {new.value}")

    @classmethod
    def assert_can_check_in(cls, state: TicketState) -> None:
        if state.is_checked_in:
            raise AlreadyCheckedInError("Ticket has already been checked in")
        if state.status is not TicketStatus.ACTIVE:
            raise TicketNotActiveError(state.status.value)

    @classmethod
    def assert_can_cancel(cls, state: TicketState) -> None:
        if state.status is TicketStatus.CANCELLED:
            raise AlreadyCancelledError()
        if state.status is TicketStatus.REFUNDED:
            raise AlreadyRefundedError()
        cls.assert_transition(state.status, TicketStatus.CANCELLED)
