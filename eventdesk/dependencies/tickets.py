from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from eventdesk.dependencies.auth import Role, User, role_required
from eventdesk.tickets.holds import HoldManager
from eventdesk.tickets.queries import TicketQueryService
from eventdesk.tickets.service import TicketService

require_admin = role_required(Role.ADMIN)
require_organizer = role_required(Role.ORGANIZER)
require_attendee = role_required(Role.ATTENDEE)

AdminUser = Annotated[User, Depends(require_admin)]
OrganizerUser = Annotated[User, Depends(require_organizer)]
AttendeeUser = Annotated[User, Depends(require_attendee)]


def _from_state(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return service


async def get_ticket_service(request: Request) -> TicketService:
    return _from_state(request, "ticket_service", "Ticket service")


async def get_query_service(request: Request) -> TicketQueryService:
    return _from_state(request, "ticket_queries", "Ticket query service")


async def get_hold_manager(request: Request) -> HoldManager:
    return _from_state(request, "hold_manager", "Hold manager")


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
TicketQueriesDep = Annotated[TicketQueryService, Depends(get_query_service)]
HoldManagerDep = Annotated[HoldManager, Depends(get_hold_manager)]
