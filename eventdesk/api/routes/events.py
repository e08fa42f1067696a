from __future__ import annotations

from fastapi import APIRouter, status

from eventdesk.api.schemas import (
    AttendeeResponse,
    EventTicketSettingsResponse,
    TicketDetailResponse,
    TicketPurchaseRequest,
    TicketResponse,
    TicketSettingsRequest,
    to_http_exception,
)
from eventdesk.dependencies.tickets import AttendeeUser, OrganizerUser, TicketQueriesDep, TicketServiceDep
from eventdesk.tickets.errors import TicketServiceError
from eventdesk.tickets.models import TicketSettingsUpdate

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/{event_id}/tickets", response_model=TicketDetailResponse, status_code=status.HTTP_201_CREATED)
async def purchase_ticket(
    event_id: str,
    payload: TicketPurchaseRequest,
    service: TicketServiceDep,
    user: AttendeeUser,
) -> TicketDetailResponse:
    try:
        ticket = await service.purchase(
            event_id=event_id,
            user_id=user.user_id,
            use_verification_code=payload.use_verification_code,
            payment=payload.payment.to_card() if payload.payment else None,
        )
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return TicketDetailResponse.from_entity(ticket)


@router.get("/{event_id}/tickets", response_model=list[TicketResponse])
async def list_event_tickets(event_id: str, queries: TicketQueriesDep, _: OrganizerUser) -> list[TicketResponse]:
    try:
        tickets = await queries.by_event(event_id)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return [TicketResponse.from_entity(ticket) for ticket in tickets]


@router.get("/{event_id}/attendees", response_model=list[AttendeeResponse])
async def list_attendees(event_id: str, queries: TicketQueriesDep, _: OrganizerUser) -> list[AttendeeResponse]:
    try:
        entries = await queries.attendees(event_id)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return [AttendeeResponse.from_entry(entry) for entry in entries]


@router.put("/{event_id}/ticket-settings", response_model=EventTicketSettingsResponse)
async def update_ticket_settings(
    event_id: str,
    payload: TicketSettingsRequest,
    service: TicketServiceDep,
    _: OrganizerUser,
) -> EventTicketSettingsResponse:
    settings = TicketSettingsUpdate(
        enabled=payload.enabled,
        available=payload.available,
        price=payload.price,
        currency=payload.currency,
        verification_required=payload.verification_required,
    )
    try:
        event = await service.update_event_ticket_settings(event_id, settings)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return EventTicketSettingsResponse.from_event(event)
