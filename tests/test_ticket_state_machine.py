import pytest

from eventdesk.tickets.errors import (
    AlreadyCancelledError,
    AlreadyCheckedInError,
    AlreadyRefundedError,
    TicketNotActiveError,
)
from eventdesk.tickets.state import AttendanceStatus, TicketState, TicketStateMachine, TicketStatus


def test_ticket_state_machine_allows_expected_transitions():
    assert TicketStateMachine.can_transition(TicketStatus.ACTIVE, TicketStatus.USED)
    assert TicketStateMachine.can_transition(TicketStatus.ACTIVE, TicketStatus.CANCELLED)
    assert TicketStateMachine.can_transition(TicketStatus.USED, TicketStatus.REFUNDED)
    assert TicketStateMachine.can_transition(TicketStatus.CANCELLED, TicketStatus.CANCELLED)


def test_ticket_state_machine_blocks_invalid_transitions():
    assert not TicketStateMachine.can_transition(TicketStatus.CANCELLED, TicketStatus.ACTIVE)
    assert not TicketStateMachine.can_transition(TicketStatus.REFUNDED, TicketStatus.CANCELLED)
    with pytest.raises(ValueError):
        TicketStateMachine.assert_transition(TicketStatus.CANCELLED, TicketStatus.USED)


def test_initial_state_is_active_and_not_checked_in():
    state = TicketStateMachine.initial_state()
    assert state.status is TicketStatus.ACTIVE
    assert state.attendance is AttendanceStatus.NOT_CHECKED_IN
    assert state.can_check_in


def test_check_in_rejects_used_before_inactive():
    state = TicketState.from_flags(TicketStatus.CANCELLED, checked_in=True)
    with pytest.raises(AlreadyCheckedInError):
        TicketStateMachine.assert_can_check_in(state)

    with pytest.raises(TicketNotActiveError) as exc:
        TicketStateMachine.assert_can_check_in(TicketState.from_flags(TicketStatus.REFUNDED, checked_in=False))
    assert str(exc.value) == "Ticket is refunded"


def test_cancel_rejects_closed_tickets():
    with pytest.raises(AlreadyCancelledError):
        TicketStateMachine.assert_can_cancel(TicketState.from_flags(TicketStatus.CANCELLED, False))
    with pytest.raises(AlreadyRefundedError):
        TicketStateMachine.assert_can_cancel(TicketState.from_flags(TicketStatus.REFUNDED, False))

    checked_in = TicketState.from_flags(TicketStatus.ACTIVE, True)
    TicketStateMachine.assert_can_cancel(checked_in)
    assert checked_in.can_cancel
    assert not checked_in.can_check_in
