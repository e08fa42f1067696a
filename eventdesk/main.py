import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from eventdesk.api.routes import events, ping, tickets
from eventdesk.core.config import Settings, get_settings
from eventdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from eventdesk.services.postgres import PostgresHealthProbe
from eventdesk.tickets.holds import HoldManager, run_hold_sweeper
from eventdesk.tickets.numbers import TicketNumberAllocator
from eventdesk.tickets.queries import TicketQueryService
from eventdesk.tickets.repository import (
    EventRepository,
    TicketHoldRepository,
    TicketRepository,
    UserProfileRepository,
)
from eventdesk.tickets.service import TicketService


def build_services(app: FastAPI, settings: Settings, session_factory, engine) -> TicketRepository:
    """Attach the ticket services to ``app.state`` and return the ticket repository."""

    ticket_repository = TicketRepository(session_factory, engine=engine)
    hold_repository = TicketHoldRepository(session_factory, engine=engine)
    event_repository = EventRepository(session_factory, engine=engine)
    profile_repository = UserProfileRepository(session_factory, engine=engine)

    hold_manager = HoldManager(hold_repository, hold_minutes=settings.ticket_hold_minutes)
    allocator = TicketNumberAllocator(
        ticket_repository,
        hold_repository,
        max_attempts=settings.ticket_number_max_attempts,
    )
    app.state.hold_manager = hold_manager
    app.state.ticket_service = TicketService(
        ticket_repository,
        event_repository,
        allocator=allocator,
        holds=hold_manager,
        default_currency=settings.default_ticket_currency,
    )
    app.state.ticket_queries = TicketQueryService(ticket_repository, profiles=profile_repository)
    return ticket_repository


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    database_probe = PostgresHealthProbe(dsn=settings.postgres_dsn)
    app.state.database_probe = database_probe

    db_engine = create_async_engine(settings.async_database_url, future=True)
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    sweeper: asyncio.Task | None = None
    try:
        ticket_repository = build_services(app, settings, session_factory, db_engine)
        await ticket_repository.ensure_schema()
    except Exception:
        logger.exception("Ticket services could not be initialised")
        app.state.ticket_service = None
        app.state.ticket_queries = None
        app.state.hold_manager = None
    else:
        if settings.hold_sweep_interval_seconds > 0:
            sweeper = asyncio.create_task(
                run_hold_sweeper(app.state.hold_manager, interval_seconds=settings.hold_sweep_interval_seconds)
            )
    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await sweeper
        await db_engine.dispose()
        await database_probe.close()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(ping.router)
    app.include_router(events.router)
    app.include_router(tickets.router)
    return app


app = create_app()
