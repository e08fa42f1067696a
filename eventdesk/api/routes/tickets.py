from __future__ import annotations

from fastapi import APIRouter, HTTPException

from eventdesk.api.schemas import (
    CheckInRequest,
    HoldSweepResponse,
    QRPayloadResponse,
    ScanRequest,
    TicketDetailResponse,
    TicketResponse,
    TicketValidationResponse,
    ValidateRequest,
    to_http_exception,
)
from eventdesk.dependencies.auth import Role
from eventdesk.dependencies.tickets import (
    AdminUser,
    AttendeeUser,
    HoldManagerDep,
    OrganizerUser,
    TicketQueriesDep,
    TicketServiceDep,
)
from eventdesk.tickets.errors import TicketServiceError

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("/mine", response_model=list[TicketDetailResponse])
async def list_my_tickets(queries: TicketQueriesDep, user: AttendeeUser) -> list[TicketDetailResponse]:
    try:
        tickets = await queries.by_user(user.user_id)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return [TicketDetailResponse.from_entity(ticket) for ticket in tickets]


@router.get("/by-number/{ticket_number}", response_model=TicketResponse)
async def get_ticket_by_number(ticket_number: str, queries: TicketQueriesDep, _: OrganizerUser) -> TicketResponse:
    try:
        ticket = await queries.by_number(ticket_number)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    if ticket is None:
        raise HTTPException(status_code=404, detail=f"Ticket number {ticket_number} not found")
    return TicketResponse.from_entity(ticket)


@router.post("/scan", response_model=TicketResponse)
async def check_in_scanned(payload: ScanRequest, service: TicketServiceDep, _: OrganizerUser) -> TicketResponse:
    try:
        ticket = await service.check_in_scanned(payload.payload, event_id=payload.event_id)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return TicketResponse.from_entity(ticket)


@router.post("/validate", response_model=TicketValidationResponse)
async def validate_ticket(
    payload: ValidateRequest, service: TicketServiceDep, _: OrganizerUser
) -> TicketValidationResponse:
    try:
        result = await service.validate_ticket(payload.ticket_number, payload.verification_code)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return TicketValidationResponse.from_result(result)


@router.post("/holds/sweep", response_model=HoldSweepResponse)
async def sweep_expired_holds(holds: HoldManagerDep, _: AdminUser) -> HoldSweepResponse:
    try:
        removed = await holds.sweep_expired()
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return HoldSweepResponse(removed=removed)


@router.get("/{ticket_id}", response_model=TicketDetailResponse)
async def get_ticket(ticket_id: str, service: TicketServiceDep, user: AttendeeUser) -> TicketDetailResponse:
    try:
        ticket = await service.get_ticket(ticket_id)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    is_owner = ticket.user_id == user.user_id
    if not is_owner and not user.has_role(Role.ORGANIZER):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return TicketDetailResponse.from_entity(ticket, reveal_code=is_owner)


@router.get("/{ticket_id}/qr", response_model=QRPayloadResponse)
async def get_ticket_qr(ticket_id: str, service: TicketServiceDep, user: AttendeeUser) -> QRPayloadResponse:
    try:
        ticket = await service.get_ticket(ticket_id)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    if ticket.user_id != user.user_id:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return QRPayloadResponse(ticket_id=ticket.id, payload=ticket.qr_payload().to_json())


@router.post("/{ticket_id}/check-in", response_model=TicketResponse)
async def check_in_ticket(
    ticket_id: str,
    payload: CheckInRequest,
    service: TicketServiceDep,
    _: OrganizerUser,
) -> TicketResponse:
    try:
        ticket = await service.check_in(ticket_id, payload.verification_code)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return TicketResponse.from_entity(ticket)


@router.post("/{ticket_id}/cancel", response_model=TicketResponse)
async def cancel_ticket(ticket_id: str, service: TicketServiceDep, _: OrganizerUser) -> TicketResponse:
    try:
        ticket = await service.cancel(ticket_id)
    except TicketServiceError as exc:
        raise to_http_exception(exc) from exc
    return TicketResponse.from_entity(ticket)
